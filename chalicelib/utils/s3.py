from io import BytesIO
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from chalicelib.config import Config, get_config
from chalicelib.utils.boto_clients import get_s3_client
from chalicelib.utils.exceptions import UploadFailed
from chalicelib.utils.logger import logger, log_exception

_IMAGE_STORE = None


class ImageStore:

    def __init__(self, config: Config, client=None):
        self.bucket = config.images_bucket
        self.region = config.region
        self.client = client if client is not None else get_s3_client(config)

    def public_url(self, file_path: str) -> str:
        return f'https://{self.bucket}.s3.{self.region}.amazonaws.com/{file_path}'

    def upload(self, body: bytes, file_path: str, content_type: str) -> str:
        if not self.bucket:
            raise UploadFailed('Images bucket is not configured')
        try:
            self.client.upload_fileobj(BytesIO(body), self.bucket, file_path,
                                       ExtraArgs={'ContentType': content_type})
        except (ClientError, BotoCoreError) as error:
            log_exception(error, status_code=502, msg=f'upload ::: {file_path=} was not uploaded')
            raise UploadFailed(f'Error uploading image: {error}') from error
        logger.info(f'upload_file_to_s3:: SUCCESS, {file_path=}')
        return self.public_url(file_path)


def get_image_store() -> ImageStore:
    global _IMAGE_STORE
    if _IMAGE_STORE is None:
        _IMAGE_STORE = ImageStore(get_config())
    return _IMAGE_STORE


def set_image_store(image_store: Optional[ImageStore]) -> None:
    global _IMAGE_STORE
    _IMAGE_STORE = image_store
