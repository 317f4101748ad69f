# android_x86_hook/config/__init__.py
from .annotations import DEFAULT_ANNOTATION_DOMAIN, DEFAULT_KEYS, AnnotationKeys
from .config_loader import Config

__all__ = ["DEFAULT_ANNOTATION_DOMAIN", "DEFAULT_KEYS", "AnnotationKeys", "Config"]
