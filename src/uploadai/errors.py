class UploadAIError(Exception):
    status_code = 500


class ValidationError(UploadAIError):
    status_code = 400


class NotFoundError(UploadAIError):
    status_code = 404


class MissingPrerequisiteError(UploadAIError):
    status_code = 400


class TranscodeError(UploadAIError):
    status_code = 500


class ProviderError(UploadAIError):
    status_code = 502


class TranscriptionProviderError(ProviderError):
    pass


class CompletionProviderError(ProviderError):
    pass


class PayloadTooLargeError(UploadAIError):
    status_code = 413
