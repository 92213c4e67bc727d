import os
import yaml
from pydantic import ValidationError
from typing import Dict, Any

from services.nikigai_engine.models import ArchetypeLibrary, ArchetypeLibraryError

DEFAULT_ARCHETYPE_LIBRARY_PATH = os.path.join(os.path.dirname(__file__), "assets", "role_archetypes.yml")

def load_archetype_library_data(data: Dict[str, Any]) -> ArchetypeLibrary:
    """
    Validates raw archetype data against the ArchetypeLibrary model
    and checks that archetype names are unique (case-insensitive).
    """
    try:
        library = ArchetypeLibrary.model_validate(data)
    except ValidationError as e:
        # Schema problems surface as Pydantic errors
        raise e

    seen_names = set()
    for archetype in library.archetypes:
        name_key = archetype.name.strip().lower()
        if name_key in seen_names:
            raise ArchetypeLibraryError(f"Duplicate archetype name found: {archetype.name}")
        seen_names.add(name_key)

    return library

def load_archetype_library_from_file(file_path: str) -> ArchetypeLibrary:
    """
    Loads a role archetype library from a YAML file, validates it,
    and returns an ArchetypeLibrary object.
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ArchetypeLibraryError(f"File not found: {file_path}")
    except yaml.YAMLError as e:
        raise ArchetypeLibraryError(f"Error parsing YAML file {file_path}: {e}")

    if data is None:
        raise ArchetypeLibraryError(f"YAML file is empty or invalid: {file_path}")
    if not isinstance(data, dict):
        raise ArchetypeLibraryError(f"Expected a mapping at the top of {file_path}, got {type(data).__name__}")

    return load_archetype_library_data(data)
