import os
from typing import Optional, Sequence

from ..utils.logger import app_logger

RESOLVABLE_EXTENSIONS = (".js", ".ts", ".vue", ".jsx", ".tsx")


class ImportResolver:
    """Resolves relative import specifiers to files on disk.

    Bare specifiers (packages) are external and never resolved.
    """

    def __init__(self, extensions: Sequence[str] = RESOLVABLE_EXTENSIONS):
        self.logger = app_logger.bind(component="import_resolver")
        self.extensions = tuple(extensions)

    def resolve(self, from_file: str, import_path: str) -> Optional[str]:
        """Return the absolute path the specifier points at, or None."""
        if not import_path or not import_path.startswith("."):
            return None

        try:
            from_dir = os.path.dirname(os.path.abspath(from_file))
            resolved = os.path.normpath(os.path.join(from_dir, import_path))

            for ext in self.extensions:
                candidate = resolved + ext
                if os.path.isfile(candidate):
                    return candidate

            for ext in self.extensions:
                candidate = os.path.join(resolved, "index" + ext)
                if os.path.isfile(candidate):
                    return candidate
        except (OSError, ValueError) as e:
            self.logger.debug(f"Could not resolve {import_path} from {from_file}: {e}")

        return None
