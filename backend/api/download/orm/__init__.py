from api.download.orm.download_log_model import DownloadLogModel

__all__ = ["DownloadLogModel"]
