from api.accounts.orm.account_model import DownloadAccountModel

__all__ = ["DownloadAccountModel"]
