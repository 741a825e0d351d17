"""
Exceptions raised by the verifier and its collaborators.
"""


class VerifierError(Exception):
    pass


class DownloadFailed(VerifierError):
    """A resource could not be fetched (network error, bad status, timeout)."""


class InspectionFailed(VerifierError):
    """ffprobe could not analyse a file."""


class MissingDependency(VerifierError):
    """An external tool needed for validation is not usable."""


class UsageError(VerifierError):
    pass
