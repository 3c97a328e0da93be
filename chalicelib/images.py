import time
from io import BytesIO
from typing import Tuple

from chalice import Response
from chalice.app import Request
from PIL import Image, UnidentifiedImageError
from requests_toolbelt.multipart.decoder import (
    MultipartDecoder, NonMultipartContentTypeException, ImproperBodyPartContentException
)

from chalicelib.config import get_config
from chalicelib.constants.constants import PROFILE_IMAGE_FORM_FIELD, PROFILE_IMAGE_CONTENT_TYPE
from chalicelib.constants.keys_structure import image_key
from chalicelib.constants.status_codes import http200
from chalicelib.users import User
from chalicelib.utils import auth as utils_auth, app as utils_app, exceptions
from chalicelib.utils.logger import logger
from chalicelib.utils.s3 import get_image_store


def get_resize_width_height(image: Image.Image, max_width: int) -> Tuple[int, int]:
    """
    The longest side is shrunk to max_width, smaller images keep their size
    """
    width, height = image.size
    if max([width, height]) <= max_width:
        return width, height
    divider = max([width, height]) / max_width
    return max(1, int(width / divider)), max(1, int(height / divider))


def compress_image(content: bytes, max_width: int) -> bytes:
    try:
        image: Image.Image = Image.open(BytesIO(content))
        image.load()
    except (UnidentifiedImageError, OSError) as error:
        raise exceptions.ValidationError(f'Uploaded file is not a supported image: {error}')

    image = image.resize(size=get_resize_width_height(image, max_width))
    if image.mode not in ('RGB', 'RGBA', 'L', 'LA'):
        image = image.convert('RGBA')

    buf = BytesIO()
    image.save(buf, format='PNG', optimize=True)
    return buf.getvalue()


def parse_multipart_request_data(current_request: Request) -> bytes:
    """
    :return:
    content of the image form field
    """
    content_type = current_request.headers.get('content-type', '')
    try:
        decoder = MultipartDecoder(current_request.raw_body or b'', content_type)
    except (NonMultipartContentTypeException, ImproperBodyPartContentException) as error:
        raise exceptions.ValidationError(f'Request body should be multipart/form-data: {error}')

    for part in decoder.parts:
        disposition = part.headers.get(b'Content-Disposition', b'').decode('utf-8')
        if f'name="{PROFILE_IMAGE_FORM_FIELD}"' in disposition:
            if not part.content:
                break
            return part.content
    raise exceptions.ValidationError(f'Form field "{PROFILE_IMAGE_FORM_FIELD}" with a file is required')


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_upload_profile_image(current_request: Request) -> Response:
    """
    Stores the image as PNG under the owner's folder and saves its url to the profile
    """
    username = utils_auth.get_username(current_request)
    file_content = parse_multipart_request_data(current_request)
    content = compress_image(file_content, get_config().max_image_width)

    user = User.init_by_username(username)
    file_path = image_key(username, int(time.time() * 1000))
    image_url = get_image_store().upload(content, file_path, PROFILE_IMAGE_CONTENT_TYPE)
    user.set_image_url(image_url)
    logger.info(f'endpoint_upload_profile_image ::: {username=} {image_url=}')
    return Response(status_code=http200, headers={"Content-Type": 'application/json'},
                    body={'message': 'Profile image was updated successfully', 'imageUrl': image_url})
