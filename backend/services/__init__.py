"""Business logic services."""

from .account_cleanup import PurgeSummary, purge_user_storage
from .avatar_keys import (
    AvatarKeys,
    InvalidAvatarUrlError,
    generate_avatar_key,
    resolve_avatar_url,
)
from .images import (
    JPEG_CONTENT_TYPE,
    UploadTooLargeError,
    is_image_content_type,
    read_upload_file,
    render_thumbnail,
)
from .rate_limiter import (
    RateLimitMiddleware,
    RateLimiter,
    get_rate_limiter,
    set_rate_limiter,
)
from .storage import (
    build_public_url,
    delete_object,
    delete_objects_batch,
    get_minio_client,
    get_object_bytes,
    is_missing_object_error,
    iter_object_keys,
    put_object_bytes,
)
from .thumbnails import (
    ObjectRef,
    ThumbnailBatchResult,
    process_notification,
    process_object_keys,
)

__all__ = [
    "AvatarKeys",
    "InvalidAvatarUrlError",
    "generate_avatar_key",
    "resolve_avatar_url",
    "PurgeSummary",
    "purge_user_storage",
    "JPEG_CONTENT_TYPE",
    "UploadTooLargeError",
    "is_image_content_type",
    "read_upload_file",
    "render_thumbnail",
    "RateLimiter",
    "RateLimitMiddleware",
    "get_rate_limiter",
    "set_rate_limiter",
    "build_public_url",
    "delete_object",
    "delete_objects_batch",
    "get_minio_client",
    "get_object_bytes",
    "is_missing_object_error",
    "iter_object_keys",
    "put_object_bytes",
    "ObjectRef",
    "ThumbnailBatchResult",
    "process_notification",
    "process_object_keys",
]
