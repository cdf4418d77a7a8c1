# attrconfig/errors.py

from typing import Dict, List, Optional


class AttrConfigError(Exception):
    pass


class ParseError(AttrConfigError):
    """
    Raw document text is not well formed.
    Non-blocking: the editing state is left exactly as it was.
    """

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line

    def to_dict(self) -> dict:
        return {"error": "parse_error", "message": self.message, "line": self.line}


class ValidationFailed(AttrConfigError):
    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(self.errors.values()) or "Validation failed")

    def to_dict(self) -> dict:
        return {"error": "validation_failed", "errors": self.errors}


class Unauthorized(AttrConfigError):
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} does not belong to this shop")

    def to_dict(self) -> dict:
        return {"error": "unauthorized", "entity": self.entity, "id": self.entity_id}


class NotFound(AttrConfigError):
    def __init__(self, entity: str, key: str):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")

    def to_dict(self) -> dict:
        return {"error": "not_found", "entity": self.entity, "key": self.key}


class ExternalWriteFailed(AttrConfigError):
    """
    The metafield write failed, either in transport or with remote user errors.
    The baseline is not advanced.
    """

    def __init__(self, messages: List[str]):
        self.messages = [str(m) for m in messages] or ["Unknown write failure"]
        super().__init__(self.messages[0])

    def to_dict(self) -> dict:
        return {"error": "external_write_failed", "messages": self.messages}


class InvalidRequest(AttrConfigError):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": "invalid_request", "message": self.message}


class SaveInProgress(AttrConfigError):
    def __init__(self):
        super().__init__("A save is already in progress for this session")

    def to_dict(self) -> dict:
        return {"error": "save_in_progress", "message": str(self)}
