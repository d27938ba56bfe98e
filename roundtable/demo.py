"""Create demo discussions for development/testing."""

import shutil

from roundtable.characters import builtin_characters, new_custom_character
from roundtable.models import Discussion, ModelBinding
from roundtable.storage import Storage

DEMO_DISCUSSIONS = [
    {
        "id": "demo-debate",
        "name": "Friday Night Roundtable",
        "topic": "Should cities ban cars from their centres?",
        "type": "debate",
    },
    {
        "id": "demo-opinion",
        "name": "Opinion Panel",
        "topic": "Will AI make remote work obsolete?",
        "type": "opinion",
    },
]


def create_demo_data(storage: Storage) -> list[Discussion]:
    """Wipe existing discussions and create fresh demo data.

    The demo guest "Socrates" is generative and bound to a local Ollama
    model; without Ollama running his turns show up as in-band errors.
    """
    disc_root = storage.base_path / "discussions"
    if disc_root.exists():
        shutil.rmtree(disc_root)
    disc_root.mkdir(parents=True, exist_ok=True)

    socrates = new_custom_character(
        "Socrates",
        ModelBinding(provider="ollama", model="llama3"),
        description="Answers questions with sharper questions.",
        tag="Gadfly",
    )
    storage.save_custom_character(socrates)

    roster = builtin_characters()[:3] + [socrates]
    created = []
    for entry in DEMO_DISCUSSIONS:
        created.append(storage.create_discussion(Discussion(roster=roster, **entry)))
    return created
