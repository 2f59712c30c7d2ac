from api.teams.orm.team_model import TeamFileModel, TeamMemberModel, TeamModel

__all__ = ["TeamModel", "TeamMemberModel", "TeamFileModel"]
