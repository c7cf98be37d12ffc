import importlib

MODULES = [
    'mixarchive.db.engine',
    'mixarchive.db.models',
    'mixarchive.repository.archive_requests',
    'mixarchive.repository.artifacts',
    'mixarchive.storage.local_store',
    'mixarchive.services.pagination',
    'mixarchive.services.item_worker',
    'mixarchive.services.archive_assembler',
    'mixarchive.api.app',
]

def test_imports():
    for m in MODULES:
        importlib.import_module(m)
