from api.settings.orm.settings_model import SettingModel

__all__ = ["SettingModel"]
