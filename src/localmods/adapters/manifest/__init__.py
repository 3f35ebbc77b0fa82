from .yaml_manifest import YamlManifestReader

__all__ = ["YamlManifestReader"]
