"""Models package - exports all SQLAlchemy models."""
# Accounts
from rebath.models.profile import Profile, UserRole

# Projects and access control
from rebath.models.project import Project, ProjectType, ProjectStatus, ProjectPriority
from rebath.models.project_permission import ProjectPermission, PermissionType

# Catalog
from rebath.models.fixture_category import FixtureCategory
from rebath.models.fixture_option import FixtureOption
from rebath.models.room_type import RoomType

# Field work
from rebath.models.assessment import Assessment, AssessmentStatus
from rebath.models.job_work_item import JobWorkItem, WorkItemPriority, WorkItemStatus
from rebath.models.quote import Quote, QuoteStatus

__all__ = [
    'Profile', 'UserRole',
    'Project', 'ProjectType', 'ProjectStatus', 'ProjectPriority',
    'ProjectPermission', 'PermissionType',
    'FixtureCategory', 'FixtureOption', 'RoomType',
    'Assessment', 'AssessmentStatus',
    'JobWorkItem', 'WorkItemPriority', 'WorkItemStatus',
    'Quote', 'QuoteStatus',
]
