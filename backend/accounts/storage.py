"""Avatar object storage: one object per user, overwritten on re-upload."""

import os

from django.core.files.storage import FileSystemStorage
from django.utils.deconstruct import deconstructible


@deconstructible
class AvatarStorage(FileSystemStorage):
    """
    File storage with overwrite semantics.

    Avatars live at a deterministic key, so saving under an existing name
    replaces the stored bytes instead of picking a fresh suffixed name.
    """

    def get_available_name(self, name, max_length=None):
        if self.exists(name):
            self.delete(name)
        return name


def avatar_upload_to(instance, filename):
    ext = os.path.splitext(filename)[1].lower() or ".png"
    return f"avatars/{instance.pk}{ext}"
