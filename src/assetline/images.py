from __future__ import annotations

import shutil
import typing as t
from pathlib import Path

from .core import Step
from .dependencies import PipDependency


class ImageOptimizeStep(Step):
    """
    A Pillow step which recompresses raster images in their own format.
    """
    def __init__(self, jpeg_quality: int = 85, optimize: bool = True):
        self.jpeg_quality = jpeg_quality
        self.optimize = optimize

    @classmethod
    def get_dependencies(cls):
        return super().get_dependencies() | {
            PipDependency(
                'Pillow',
                check_name='PIL'
            ),
        }

    def save_params(self, image_format: str, img) -> dict[str, t.Any]:
        """
        Return the encoder options to save @img with for @image_format.
        """
        params: dict[str, t.Any] = {'optimize': self.optimize}
        if image_format == 'JPEG':
            params |= {'quality': self.jpeg_quality, 'progressive': True}
        elif image_format == 'GIF' and getattr(img, 'is_animated', False):
            params |= {'save_all': True}
        return params

    def __call__(self, path: Path, output_paths: list[Path]):
        from PIL import Image

        with Image.open(path) as img:
            image_format = img.format
            if not image_format:
                raise ValueError(f'Could not detect image format for {path}!')
            output_paths[0].parent.mkdir(parents=True, exist_ok=True)
            img.save(output_paths[0], format=image_format, **self.save_params(image_format, img))

        for target_path in output_paths[1:]:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy(output_paths[0], target_path)
