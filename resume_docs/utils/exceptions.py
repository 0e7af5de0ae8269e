from __future__ import annotations


class PipelineError(Exception):
    """Base class for resume generation errors."""


class NotFound(PipelineError):
    """A heading, placeholder or block is absent from the current snapshot."""


class InvalidRange(PipelineError):
    """A resolved block has no usable start/end offset."""


class RemoteBatchFailure(PipelineError):
    def __init__(self, document_id: str, message: str, request_count: int = 0):
        super().__init__(f"Batch update on '{document_id}' failed: {message}")
        self.document_id = document_id
        self.message = message
        self.request_count = request_count


class DocumentReadFailed(PipelineError):
    def __init__(self, document_id: str, message: str):
        super().__init__(f"Reading document '{document_id}' failed: {message}")
        self.document_id = document_id
        self.message = message


class StageExecutionFailed(PipelineError):
    def __init__(self, stage: str, message: str):
        super().__init__(f"Stage '{stage}' failed: {message}")
        self.stage = stage
        self.message = message


class AuthFailure(PipelineError):
    pass


class TemplateCopyFailed(PipelineError):
    pass


class ShareFailed(PipelineError):
    pass


class InvalidResumeData(PipelineError):
    pass
