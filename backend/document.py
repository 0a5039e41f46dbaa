# document.py
from __future__ import annotations
import copy
from typing import Any, Callable, Dict, List, Optional

from storage import new_id

# Form steps, in the order the builder walks through them.
STEPS = [
    {"id": "personal", "title": "Datos Personales"},
    {"id": "profile", "title": "Perfil"},
    {"id": "experience", "title": "Experiencia"},
    {"id": "education", "title": "Educación"},
    {"id": "skills", "title": "Habilidades"},
    {"id": "additional", "title": "Otros Datos"},
    {"id": "references", "title": "Referencias"},
    {"id": "preview", "title": "Vista Previa"},
]

FONT_PAIRINGS = ("arial-times", "calibri-cambria", "lato-roboto")
SKILL_CATEGORIES = ("Técnica", "Blanda")

DEFAULT_DOCUMENT: Dict[str, Any] = {
    "personalInfo": {
        "fullName": "",
        "email": "",
        "phone": "",
        "address": "",
        "idNumber": "",
        "maritalStatus": "Soltero/a",
        "birthDate": "",
        "photo": "",
        "linkedin": "",
        "website": "",
    },
    "professionalProfile": "",
    "experience": [],
    "education": [],
    "skills": [],
    "languages": [],
    "additionalTraining": [],
    "otherInterests": {
        "availability": "",
        "mobility": False,
        "license": "",
        "other": "",
    },
    "references": [],
    "design": {"fontPairing": "arial-times"},
}

# Blank entry per list section; `id` is filled in by new_entry().
ENTRY_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "experience": {"company": "", "position": "", "startDate": "", "endDate": "", "current": False, "description": ""},
    "education": {"school": "", "degree": "", "startDate": "", "endDate": "", "current": False},
    "skills": {"name": "", "level": "Intermedio", "category": "Técnica"},
    "languages": {"name": "", "level": "", "certificate": ""},
    "additionalTraining": {"title": "", "center": "", "date": ""},
    "references": {"name": "", "relationship": "", "phone": "", "company": ""},
}

LIST_SECTIONS = tuple(ENTRY_TEMPLATES)


def default_document() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_DOCUMENT)


def new_entry(section: str, **fields) -> Dict[str, Any]:
    """Blank entry for a list section with a fresh sub-identifier.

    The sub-identifier only keeps list rows stable in the UI; the store
    never looks at it.
    """
    entry = {"id": new_id(), **copy.deepcopy(ENTRY_TEMPLATES[section])}
    entry.update(fields)
    return entry


def _merge(base: Dict[str, Any], loaded: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for key, value in loaded.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            out[key] = _merge(base[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


class CVDocument:
    """The editable CV owned by one builder session.

    Mutations go through this object so observers (a preview, an autosave
    hook) hear about every change. Paths are dotted: "personalInfo.fullName".
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data = default_document()
        self._observers: List[Callable[[str], None]] = []
        if data:
            self._data = _merge(self._data, data)

    # -- observers --
    def subscribe(self, callback: Callable[[str], None]) -> Callable[[], None]:
        self._observers.append(callback)

        def unsubscribe():
            if callback in self._observers:
                self._observers.remove(callback)
        return unsubscribe

    def _notify(self, path: str) -> None:
        for cb in list(self._observers):
            cb(path)

    # -- reads --
    def get(self, path: str) -> Any:
        node: Any = self._data
        for part in path.split("."):
            node = node[part]
        return node

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def entries(self, section: str) -> List[Dict[str, Any]]:
        if section not in ENTRY_TEMPLATES:
            raise KeyError(section)
        return copy.deepcopy(self._data.get(section) or [])

    # -- writes --
    def set(self, path: str, value: Any) -> None:
        *parents, leaf = path.split(".")
        node = self._data
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value
        self._notify(path)

    def append(self, section: str, **fields) -> Dict[str, Any]:
        entry = new_entry(section, **fields)
        self._data.setdefault(section, []).append(entry)
        self._notify(section)
        return copy.deepcopy(entry)

    def remove(self, section: str, entry_id: str) -> bool:
        if section not in ENTRY_TEMPLATES:
            raise KeyError(section)
        rows = self._data.get(section) or []
        kept = [row for row in rows if row.get("id") != entry_id]
        if len(kept) == len(rows):
            return False
        self._data[section] = kept
        self._notify(section)
        return True

    def reset(self, data: Optional[Dict[str, Any]] = None) -> None:
        """Replace the whole document, filling missing sections with defaults."""
        self._data = _merge(default_document(), data or {})
        self._notify("")
