from reunion.models.gallery import GalleryItem
from reunion.models.principal import Principal
from reunion.models.registration import RegistrationPayload, RegistrationRecord

__all__ = ["GalleryItem", "Principal", "RegistrationPayload", "RegistrationRecord"]
