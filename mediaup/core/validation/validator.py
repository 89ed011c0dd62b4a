"""
File admission checks.

Basic checks are synchronous and short-circuit on the first failure; kind
specific probes run afterwards. Failures are returned, not raised.
"""
import re
from typing import Optional, Union

from .constraints import ConstraintSet, MAX_FILENAME_LENGTH
from .probes import LocalProbeHost, ProbeHost
from ..exceptions import FileValidationError, ImageTooLargeError, ProbeError, ValidationCategory
from ..logging import get_logger
from ..media import CandidateFile, MediaKind

# Path-hostile characters and the ASCII control range
UNSAFE_NAME_PATTERN = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


class FileValidator:
    """
    Validates candidate files before upload.
    
    Responsibilities:
    - Basic checks (presence, size, MIME type, file name)
    - Image dimension check via the probe host (strict on decode failure)
    - Video duration check via the probe host (lenient on metadata failure)
    
    Example:
        >>> validator = FileValidator()
        >>> error = await validator.validate_image(photo)
        >>> if error:
        ...     print(error.category, error.message)
    """
    
    def __init__(self, probe_host: Optional[ProbeHost] = None):
        self._probe = probe_host or LocalProbeHost()
        self._logger = get_logger('mediaup.validation')
    
    def validate(
        self,
        file: Optional[CandidateFile],
        constraints: ConstraintSet
    ) -> Optional[FileValidationError]:
        """
        Run the basic checks.
        
        Args:
            file: Candidate file (None counts as "no file selected")
            constraints: Constraint set for the file's kind
            
        Returns:
            The first violated constraint, or None
        """
        if file is None or not file.exists():
            return FileValidationError(ValidationCategory.MISSING, 'Please select a file')
        
        if file.size_bytes == 0:
            return FileValidationError(ValidationCategory.EMPTY, 'File cannot be empty')
        
        if file.size_bytes > constraints.max_size_bytes:
            return FileValidationError(
                ValidationCategory.SIZE,
                f"File size cannot exceed {constraints.max_size_label}MB"
            )
        
        if file.mime_type not in constraints.allowed_mime_types:
            allowed = ', '.join(sorted(constraints.allowed_mime_types))
            return FileValidationError(
                ValidationCategory.TYPE,
                f"Unsupported file format. Please upload one of: {allowed}"
            )
        
        if not file.name or not file.name.strip():
            return FileValidationError(ValidationCategory.NAME, 'File name cannot be empty')
        
        if len(file.name) > MAX_FILENAME_LENGTH:
            return FileValidationError(
                ValidationCategory.NAME,
                'File name is too long, please shorten it'
            )
        
        if UNSAFE_NAME_PATTERN.search(file.name):
            return FileValidationError(
                ValidationCategory.NAME,
                'File name contains unsafe characters'
            )
        
        return None
    
    async def validate_image(
        self,
        file: Optional[CandidateFile],
        max_size_bytes: Optional[int] = None,
        constraints: Optional[ConstraintSet] = None
    ) -> Optional[FileValidationError]:
        """
        Basic checks plus decoded dimensions.
        
        An image that cannot be decoded is rejected as corrupt.
        """
        constraints = (constraints or ConstraintSet.image()).with_max_size(max_size_bytes)
        error = self.validate(file, constraints)
        if error:
            self._logger.debug(f"Image rejected by basic checks: {error.message}")
            return error
        
        try:
            dims = await self._probe.probe_image(file)
        except ImageTooLargeError as e:
            self._logger.warning(f"Image too large to decode: {e}")
            limit = constraints.max_dimension
            return FileValidationError(
                ValidationCategory.DIMENSION,
                f"Image is too large, maximum size is {limit}x{limit} pixels"
                if limit is not None else 'Image is too large'
            )
        except ProbeError as e:
            self._logger.warning(f"Image probe failed for {file.name}: {e}")
            return FileValidationError(
                ValidationCategory.CORRUPT,
                'Unable to read the image file, please check whether it is corrupted'
            )
        
        low, high = constraints.min_dimension, constraints.max_dimension
        if low is not None and (dims.width < low or dims.height < low):
            return FileValidationError(
                ValidationCategory.DIMENSION,
                f"Image is too small, minimum size is {low}x{low} pixels"
            )
        if high is not None and (dims.width > high or dims.height > high):
            return FileValidationError(
                ValidationCategory.DIMENSION,
                f"Image is too large, maximum size is {high}x{high} pixels"
            )
        
        self._logger.debug(f"Image accepted: {file.name} ({dims.width}x{dims.height})")
        return None
    
    async def validate_video(
        self,
        file: Optional[CandidateFile],
        max_size_bytes: Optional[int] = None,
        constraints: Optional[ConstraintSet] = None
    ) -> Optional[FileValidationError]:
        """
        Basic checks plus duration.
        
        When the duration cannot be determined the file is accepted on the
        strength of the basic checks alone.
        """
        constraints = (constraints or ConstraintSet.video()).with_max_size(max_size_bytes)
        error = self.validate(file, constraints)
        if error:
            self._logger.debug(f"Video rejected by basic checks: {error.message}")
            return error
        
        try:
            duration = await self._probe.probe_video(file)
        except ProbeError as e:
            self._logger.warning(f"Video duration unavailable for {file.name}, accepting: {e}")
            return None
        
        limit = constraints.max_duration_seconds
        if limit is not None and duration > limit:
            self._logger.warning(f"Video too long: {file.name} ({duration:.1f}s > {limit}s)")
            return FileValidationError(
                ValidationCategory.DURATION,
                f"Video cannot be longer than {limit:g} seconds, "
                f"current duration: {duration:.1f} seconds"
            )
        
        self._logger.debug(f"Video accepted: {file.name} ({duration:.1f}s)")
        return None
    
    async def validate_for_kind(
        self,
        file: Optional[CandidateFile],
        kind: Union[str, MediaKind],
        constraints: Optional[ConstraintSet] = None
    ) -> Optional[FileValidationError]:
        """Dispatch to the image or video validation path."""
        kind = MediaKind.coerce(kind)
        if kind is MediaKind.IMAGE:
            return await self.validate_image(file, constraints=constraints)
        return await self.validate_video(file, constraints=constraints)
