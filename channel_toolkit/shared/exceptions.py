"""
Exception hierarchy for the ZK Channel Toolkit.

Exception Categories:
- RetryableException: Transient failures that may succeed on retry (RPC, network)
- NonRetryableException: Permanent failures that won't benefit from retry (bad data)
- ConfigurationException: Startup/config errors that prevent operation

Domain exceptions are categorized:
- UnsupportedTreeSizeError -> NonRetryableException (caller must change the size)
- MalformedProofError -> NonRetryableException (prover/integration bug)
- TruncatedInstanceError -> NonRetryableException (corrupt or foreign artifact)
- ProofArtifactError -> NonRetryableException (unreadable proof ZIP)
- ArchiveException -> RetryableException (snapshot archive I/O)
- ArchiveRequestError -> NonRetryableException (archive answered 4xx)
- ProverException -> RetryableException (proving may succeed on a new run)
"""


class RetryableException(Exception):
    """
    Base class for exceptions that may succeed on retry.

    Use for transient failures like:
    - RPC timeouts
    - Rate limiting
    - Temporary network issues
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NonRetryableException(Exception):
    """
    Base class for exceptions that won't benefit from retry.

    Use for permanent failures like:
    - Invalid input data
    - Missing required data
    - Encoding contract violations
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationException(NonRetryableException):
    """
    Exception for configuration/startup errors.

    Use when:
    - Required environment variables are missing
    - Invalid configuration values
    - Missing required resources (circuit files, RPC URL)
    """

    pass


class UnsupportedTreeSizeError(NonRetryableException):
    """Resolved tree size is not one of the supported circuit sizes."""

    def __init__(self, tree_size: int, supported=(16, 32, 64, 128)):
        super().__init__(
            f"Unsupported tree size: {tree_size}. "
            f"Tree size must be one of {list(supported)}"
        )
        self.tree_size = tree_size


class MalformedProofError(NonRetryableException):
    """
    Raw prover output cannot be encoded for the verifier.

    Never retried silently: it indicates a prover or integration bug.
    """

    pass


class TruncatedInstanceError(NonRetryableException):
    """Public-input vector is shorter than the circuit layout requires."""

    def __init__(self, length: int, expected: int = 16):
        super().__init__(
            f"Instance has {length} public inputs, expected at least {expected}"
        )
        self.length = length
        self.expected = expected


class ProofArtifactError(NonRetryableException):
    """Proof ZIP is missing required files or has an invalid structure."""

    pass


class ArchiveException(RetryableException):
    """
    Exception for snapshot archive failures.

    Inherits from RetryableException because archive reads go over
    the network and usually fail for transient reasons.
    """

    pass


class ProverException(RetryableException):
    """
    Exception for proof generation failures (memory, witness, process).

    The pipeline does not retry proving; the caller re-runs the whole
    pipeline from circuit input building.
    """

    pass


class ArchiveRequestError(NonRetryableException):
    """Archive rejected the request (unknown channel or proof, bad query)."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code
