"""String enums for the docspace domain."""

from enum import StrEnum


class UserRole(StrEnum):
    USER = "user"
    ORG_ADMIN = "org_admin"
    SUPER_ADMIN = "super_admin"


class OrganizationStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    PENDING = "pending"


class AccessLevel(StrEnum):
    VIEW = "view"
    ADMIN = "admin"


class FileType(StrEnum):
    ORIGINAL = "original"
    REVISION = "revision"
    AMENDMENT = "amendment"


class NodeType(StrEnum):
    FOLDER = "folder"
    FILE = "file"


class UploadState(StrEnum):
    PENDING = "pending"
    VALIDATING = "validating"
    STORED = "stored"
    INDEXED = "indexed"
    RECORDED = "recorded"
    FAILED = "failed"


class DeleteState(StrEnum):
    ACTIVE = "active"
    PURGING_INDEX = "purging_index"
    DELETING_FILES = "deleting_files"
    DETACHING_CHATS = "detaching_chats"
    DELETING_GRANTS = "deleting_grants"
    DELETING_DOCUMENTS = "deleting_documents"
    DELETING_ROW = "deleting_row"
    DELETED = "deleted"
