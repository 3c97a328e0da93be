import os
from dataclasses import dataclass
from typing import Optional, Mapping


@dataclass(frozen=True)
class Config:
    table_name: str = 'MenuQrUsersTable-dev'
    category_index_name: str = 'categoryId-index'
    region: str = 'us-east-1'
    endpoint_url: Optional[str] = None

    jwt_secret: str = ''
    jwt_algorithm: str = 'HS256'
    token_ttl_seconds: int = 3600
    bcrypt_rounds: int = 12

    images_bucket: str = ''
    max_image_width: int = 1024

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = None) -> 'Config':
        """
        Reads the stage configuration once, at process start.
        Chalice puts the stage environment_variables from .chalice/config.json to os.environ
        """
        environ = os.environ if environ is None else environ
        return cls(
            table_name=environ.get('TABLE_NAME', cls.table_name),
            category_index_name=environ.get('CATEGORY_INDEX_NAME', cls.category_index_name),
            region=environ.get('AWS_REGION', cls.region),
            endpoint_url=environ.get('DYNAMODB_ENDPOINT') or None,
            jwt_secret=environ.get('JWT_SECRET', cls.jwt_secret),
            jwt_algorithm=environ.get('JWT_ALGORITHM', cls.jwt_algorithm),
            token_ttl_seconds=int(environ.get('TOKEN_TTL_SECONDS', cls.token_ttl_seconds)),
            bcrypt_rounds=int(environ.get('BCRYPT_ROUNDS', cls.bcrypt_rounds)),
            images_bucket=environ.get('BUCKET_NAME', cls.images_bucket),
            max_image_width=int(environ.get('MAX_IMG_WIDTH', cls.max_image_width)),
        )


_CONFIG: Optional[Config] = None


def set_config(config: Config) -> None:
    global _CONFIG
    _CONFIG = config


def get_config() -> Config:
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = Config.from_env()
    return _CONFIG
