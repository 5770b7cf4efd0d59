"""
Application Layer

Use-case orchestration on top of the transfers domain.
"""

from .transfer_service import DownloadStream, TransferService
from .upload_result import UploadResult

__all__ = ["DownloadStream", "TransferService", "UploadResult"]
