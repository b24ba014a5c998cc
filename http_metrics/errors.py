class MetricsError(Exception):
    """Base error of the metrics middleware."""


class RegistrationConflict(MetricsError, ValueError):
    """A metric name is already registered in a namespace with another shape."""

    def __init__(self, namespace: str, name: str, existing, requested):
        self.namespace = namespace
        self.name = name
        self.existing = existing
        self.requested = requested
        super().__init__(
            f"Metric '{name}' in namespace '{namespace}' is already registered "
            f"as {existing}, cannot register it as {requested}"
        )
