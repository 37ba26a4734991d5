"""
Cloudflare R2 object storage system implementation.
"""

from systems.s3 import S3CompatibleSystem
from configuration import R2_REGION
from common.errors import InvalidConfiguration
import logging

logger = logging.getLogger(__name__)


class R2System(S3CompatibleSystem):
    """Cloudflare R2 object storage system."""

    default_region = R2_REGION
    addressing_style = "path"

    def __init__(self, connection_string: str, container_name: str, **kwargs):
        super().__init__(connection_string, container_name, **kwargs)
        if not self.endpoint:
            raise InvalidConfiguration("R2 connection strings must set EndpointUrl")
