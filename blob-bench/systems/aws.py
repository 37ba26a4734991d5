"""
AWS S3 object storage system implementation.
"""

from systems.s3 import S3CompatibleSystem
from configuration import AWS_REGION
import logging

logger = logging.getLogger(__name__)


class AWSSystem(S3CompatibleSystem):
    """AWS S3 object storage system."""

    default_region = AWS_REGION
    addressing_style = "virtual"
