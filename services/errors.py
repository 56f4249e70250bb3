class TransferError(Exception):
    """Base class for pipeline stage failures."""

    code = "TRANSFER_ERROR"
    retryable = True


class SessionExpired(TransferError):
    """Browser session lost its login. A human has to sign in again."""

    code = "SESSION_EXPIRED"
    retryable = False


class StreamCaptureTimeout(TransferError):
    code = "STREAM_CAPTURE_TIMEOUT"


class DownloadIntegrityError(TransferError):
    """Downloaded track is too small to be media (usually an error page)."""

    code = "DOWNLOAD_INTEGRITY"


class MergeFailure(TransferError):
    code = "MERGE_FAILURE"


class UploadFailure(TransferError):
    code = "UPLOAD_FAILURE"


class NotFound(TransferError):
    code = "NOT_FOUND"
    retryable = False
