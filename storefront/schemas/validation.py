from pydantic import BaseModel


class ValidationError(BaseModel):
    """Individual validation error"""
    field: str  # field label (answers are keyed by label)
    code: str  # required, type, min, max, choice, min_rows, max_rows, required_cell, ...
    message: str


class ValidationPreviewResponse(BaseModel):
    """Response from checkout validation preview endpoint"""
    valid: bool
    errors: list[ValidationError]
    visible_fields: list[str]  # labels of the fields currently shown
