"""Configuration du logger (loguru) du moteur."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from config.settings import LOG_LEVEL, LOG_FILE


def setup_logger(
    level: str = LOG_LEVEL,
    log_file: Optional[str] = LOG_FILE,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Configure loguru: sortie console colorée et fichier optionnel.

    Args:
        level: Niveau de log (DEBUG, INFO, WARNING...)
        log_file: Chemin du fichier de log (None = console uniquement)
        rotation: Taille/période de rotation du fichier
        retention: Durée de conservation des fichiers
    """
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level=level,
            rotation=rotation,
            retention=retention,
        )

    logger.debug(f"Logger initialisé (niveau={level})")
