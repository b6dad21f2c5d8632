"""
Export and persistence of islands and territory state.
"""

from .serializers import (
    IslandSave,
    LoadResult,
    TerritoryRecord,
    create_island_save,
    export_island,
    load_island_file,
    load_island_save,
    save_island,
)

__all__ = ['IslandSave', 'LoadResult', 'TerritoryRecord', 'create_island_save', 'export_island',
           'load_island_file', 'load_island_save', 'save_island']
