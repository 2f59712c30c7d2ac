"""Settings repository — data access layer."""

from sqlalchemy.orm import sessionmaker

from api.settings.orm.settings_model import SettingModel


class SettingsRepository:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _get_session(self):
        return self._session_factory()

    def get_all(self) -> dict[str, str]:
        with self._get_session() as session:
            settings = session.query(SettingModel).all()
            return {s.key: s.value for s in settings}

    def get(self, key: str) -> str | None:
        with self._get_session() as session:
            setting = session.get(SettingModel, key)
            return setting.value if setting else None

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, data: dict[str, str]) -> None:
        with self._get_session() as session:
            for key, value in data.items():
                setting = session.get(SettingModel, key)
                if setting:
                    setting.value = value
                else:
                    session.add(SettingModel(key=key, value=value))
            session.commit()
