"""
Image Processor Module.

Loads invoice photos and scans from bytes and prepares them for OCR and
QR decoding:
    - EXIF orientation correction
    - Color mode normalization
    - Downscaling of oversized images
    - Contrast and sharpness enhancement

Author: ML Engineering Team
"""

import io
from PIL import Image, ImageEnhance, ImageOps

from config import get_config
from cfdi_validation.utils.logger import get_logger
from cfdi_validation.utils.exceptions import CorruptedFileError

# Initialize module logger
logger = get_logger(__name__)


class ImageProcessor:
    """
    Processor for image documents.

    Example:
        >>> processor = ImageProcessor()
        >>> image = processor.load(image_bytes)
        >>> ready = processor.prepare_for_ocr(image)
    """

    def __init__(self) -> None:
        """Initialize the image processor with configuration."""
        self.max_width = get_config("input.image.max_width", 2480)
        self.max_height = get_config("input.image.max_height", 3508)
        self.auto_orient = get_config("input.image.auto_orient", True)
        self.enhance_contrast = get_config("input.image.enhance_contrast", True)
        self.grayscale = get_config("input.image.grayscale", False)

        logger.debug(f"ImageProcessor initialized (max_size={self.max_width}x{self.max_height})")

    def load(self, image_bytes: bytes) -> Image.Image:
        """
        Decode image bytes into an oriented RGB image.

        Raises:
            CorruptedFileError: If the bytes are not a readable image.
        """
        try:
            image = Image.open(io.BytesIO(image_bytes))
            image.load()
        except Exception as e:
            logger.error(f"Failed to load image: {e}")
            raise CorruptedFileError("image", str(e))

        if self.auto_orient:
            image = self._fix_orientation(image)

        return self._convert_to_rgb(image)

    def prepare_for_ocr(self, image: Image.Image) -> Image.Image:
        """
        Resize and enhance an image for Tesseract.

        Args:
            image: RGB image.

        Returns:
            Processed image.
        """
        image = self._resize_if_needed(image)

        if self.enhance_contrast:
            image = self._enhance_image(image)

        if self.grayscale:
            image = image.convert('L')

        return image

    def _fix_orientation(self, image: Image.Image) -> Image.Image:
        """Apply the EXIF orientation tag, common in phone photos of invoices."""
        try:
            return ImageOps.exif_transpose(image)
        except Exception as e:
            logger.debug(f"Could not fix orientation: {e}")
            return image

    def _convert_to_rgb(self, image: Image.Image) -> Image.Image:
        if image.mode == 'RGB':
            return image

        if image.mode == 'RGBA':
            # Transparent areas become white paper, not black
            background = Image.new('RGB', image.size, (255, 255, 255))
            background.paste(image, mask=image.split()[3])
            return background

        return image.convert('RGB')

    def _resize_if_needed(self, image: Image.Image) -> Image.Image:
        width, height = image.size

        if width <= self.max_width and height <= self.max_height:
            return image

        ratio = min(self.max_width / width, self.max_height / height)
        new_size = (int(width * ratio), int(height * ratio))

        logger.debug(f"Resized image from {width}x{height} to {new_size[0]}x{new_size[1]}")
        return image.resize(new_size, Image.LANCZOS)

    def _enhance_image(self, image: Image.Image) -> Image.Image:
        try:
            image = ImageEnhance.Contrast(image).enhance(1.2)
            image = ImageEnhance.Sharpness(image).enhance(1.1)
        except Exception as e:
            logger.debug(f"Could not enhance image: {e}")

        return image
