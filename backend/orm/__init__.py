"""Central ORM module — imports all models for Alembic metadata discovery."""

from api.accounts.orm import DownloadAccountModel
from api.audit.orm import AuditLogModel
from api.download.orm import DownloadLogModel
from api.files.orm import FileModel
from api.settings.orm import SettingModel
from api.teams.orm import TeamFileModel, TeamMemberModel, TeamModel

__all__ = [
    "AuditLogModel",
    "DownloadAccountModel",
    "DownloadLogModel",
    "FileModel",
    "SettingModel",
    "TeamFileModel",
    "TeamMemberModel",
    "TeamModel",
]
