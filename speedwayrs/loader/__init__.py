from speedwayrs.loader.ingest import IngestEngine, IngestOutcome, IngestState, IngestSummary
from speedwayrs.loader.reader import iter_game_infos
from speedwayrs.loader.resolver import EntityResolver

__all__ = [
    "IngestEngine", "IngestOutcome", "IngestState", "IngestSummary",
    "iter_game_infos", "EntityResolver",
]
