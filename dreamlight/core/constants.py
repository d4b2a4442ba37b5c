"""Shared constants for Dreamlight.

Enumerations for every status/category column plus the defaults that
several managers rely on. Values are stored verbatim in the database.
"""

from enum import Enum


# =============================================================================
# Roles
# =============================================================================

class Role(str, Enum):
    """User roles."""
    ADMIN = "admin"
    PRODUCER = "producer"
    CREW = "crew"
    BROADCASTER = "broadcaster"
    INVESTOR = "investor"


ALL_ROLES = [r.value for r in Role]


# =============================================================================
# Projects
# =============================================================================

class ProjectType(str, Enum):
    MOVIE = "Movie"
    SERIES = "Series"
    EVENT = "Event"
    TVC = "TVC"


class ProjectStatus(str, Enum):
    """Global (top-level) lifecycle status of a project."""
    DRAFT = "Draft"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"


# Legacy status still excluded by the "active project" queries.
FINISHED_STATUS = "Finished"

DEFAULT_CLIENT_NAME = "Internal Project"
DEFAULT_INVESTOR_NAME = "Internal Funding"


# =============================================================================
# Episodes
# =============================================================================

class EpisodeStatus(str, Enum):
    SCRIPTING = "Scripting"
    FILMING = "Filming"
    EDITING = "Editing"
    PREVIEW_READY = "Preview Ready"
    MASTER_READY = "Master Ready"


# =============================================================================
# Milestones
# =============================================================================

class PhaseCategory(str, Enum):
    PRE_PRODUCTION = "Pre-Production"
    PRODUCTION = "Production"
    POST_PRODUCTION = "Post-Production"
    MASTER = "Master"


class WorkStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    WAITING_APPROVAL = "Waiting Approval"
    DONE = "Done"


class PaymentStatus(str, Enum):
    UNPAID = "Unpaid"
    PAID = "Paid"


# Phases reported by progress stats (Master is tracked but not reported)
PROGRESS_PHASES = [
    PhaseCategory.PRE_PRODUCTION.value,
    PhaseCategory.PRODUCTION.value,
    PhaseCategory.POST_PRODUCTION.value,
]

ACTIVE_WORK_STATUSES = [
    WorkStatus.PENDING.value,
    WorkStatus.IN_PROGRESS.value,
    WorkStatus.WAITING_APPROVAL.value,
]


# =============================================================================
# Finance
# =============================================================================

class FinanceType(str, Enum):
    EXPENSE = "Expense"
    INCOME = "Income"


class FinanceStatus(str, Enum):
    PAID = "Paid"
    RECEIVED = "Received"
    PENDING = "Pending"


# =============================================================================
# Assets
# =============================================================================

class AssetCategory(str, Enum):
    SCRIPT = "Script"
    CONTRACT = "Contract"
    PREVIEW_VIDEO = "Preview Video"
    MASTER_VIDEO = "Master Video"
    OTHER = "Other"


class LinkType(str, Enum):
    GOOGLE_DRIVE = "google_drive"
    DROPBOX = "dropbox"
    YOUTUBE = "youtube"
    VIMEO = "vimeo"
    ONEDRIVE = "onedrive"
    OTHER = "other"


ALLOWED_EXTENSIONS = {
    AssetCategory.SCRIPT.value: [".pdf", ".doc", ".docx", ".txt"],
    AssetCategory.CONTRACT.value: [".pdf", ".doc", ".docx"],
    AssetCategory.PREVIEW_VIDEO.value: [".mp4", ".mov", ".avi", ".mkv", ".webm"],
    AssetCategory.MASTER_VIDEO.value: [".mp4", ".mov", ".avi", ".mkv", ".mxf", ".prores"],
    AssetCategory.OTHER.value: [
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        ".zip", ".rar", ".jpg", ".jpeg", ".png",
    ],
}

# Fallback whitelist when no (known) category is given
COMMON_EXTENSIONS = [
    ".pdf", ".doc", ".docx", ".txt",
    ".mp4", ".mov", ".avi", ".mkv",
    ".jpg", ".jpeg", ".png", ".gif",
    ".zip", ".rar",
]

# Host fragment -> link type, checked in order
LINK_TYPE_HOSTS = [
    ("drive.google.com", LinkType.GOOGLE_DRIVE.value),
    ("docs.google.com", LinkType.GOOGLE_DRIVE.value),
    ("dropbox.com", LinkType.DROPBOX.value),
    ("youtube.com", LinkType.YOUTUBE.value),
    ("youtu.be", LinkType.YOUTUBE.value),
    ("vimeo.com", LinkType.VIMEO.value),
    ("onedrive.live.com", LinkType.ONEDRIVE.value),
    ("1drv.ms", LinkType.ONEDRIVE.value),
    ("sharepoint.com", LinkType.ONEDRIVE.value),
]

# Broadcaster "my files" grouping key per category
ASSET_GROUPS = {
    "scripts": AssetCategory.SCRIPT.value,
    "contracts": AssetCategory.CONTRACT.value,
    "previews": AssetCategory.PREVIEW_VIDEO.value,
    "masters": AssetCategory.MASTER_VIDEO.value,
    "others": AssetCategory.OTHER.value,
}


# =============================================================================
# Pagination
# =============================================================================

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
