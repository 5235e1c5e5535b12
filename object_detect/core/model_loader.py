"""Locate the bundled model file.

Models ship in a single directory. The precompiled export is preferred and the
source checkpoint is the fallback.
"""
import hashlib
import logging
from pathlib import Path

logger = logging.getLogger('object_detect.model_loader')

COMPILED_SUFFIX = '.onnx'
SOURCE_SUFFIX = '.pt'


def _list_bundle(model_dir: Path) -> list[str]:
    if not model_dir.is_dir():
        return []
    return sorted(entry.name for entry in model_dir.iterdir())


def resolve_model_path(model_dir: str, model_name: str) -> Path | None:
    base = Path(model_dir)

    compiled = base / f'{model_name}{COMPILED_SUFFIX}'
    if compiled.is_file():
        logger.info('Using compiled model path=%s', compiled.as_posix())
        return compiled

    source = base / f'{model_name}{SOURCE_SUFFIX}'
    if source.is_file():
        logger.info('Compiled model missing, using source model path=%s', source.as_posix())
        return source

    logger.error(
        'Model %s not found in %s (looked for %s, %s) bundle_contents=%s',
        model_name,
        base.as_posix(),
        compiled.name,
        source.name,
        _list_bundle(base),
    )
    return None


def sha256_file(path: str | None) -> str | None:
    if not path:
        return None
    file_path = Path(path)
    if not file_path.is_file():
        return None

    digest = hashlib.sha256()
    with file_path.open('rb') as fh:
        for chunk in iter(lambda: fh.read(1024 * 1024), b''):
            digest.update(chunk)
    return digest.hexdigest()
