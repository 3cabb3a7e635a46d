from .normalize_node import normalize_upload
from .upload_node import dispatch_upload
from .location_node import locate_user
from .identify_node import identify_dish

__all__ = ["normalize_upload", "dispatch_upload", "locate_user", "identify_dish"]
