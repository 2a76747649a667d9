import pytest

from rowview.models import FieldCatalog, FieldDefinition, FieldOption, FieldType, Row


@pytest.fixture
def fields():
    """A task-board field catalog covering every value kind."""
    return [
        FieldDefinition(id="title", name="Title", type=FieldType.TITLE),
        FieldDefinition(
            id="status", name="Status", type=FieldType.SINGLE_SELECT,
            options=[
                FieldOption("opt_todo", "Todo"),
                FieldOption("opt_progress", "In Progress"),
                FieldOption("opt_done", "Done"),
            ],
        ),
        FieldDefinition(
            id="tags", name="Tags", type=FieldType.MULTI_SELECT,
            options=[FieldOption("t1", "Bug"), FieldOption("t2", "Feature")],
        ),
        FieldDefinition(
            id="assignee", name="Assignee", type=FieldType.ASSIGNEE,
            options=[FieldOption("u1", "Tony"), FieldOption("u2", "Ada")],
        ),
        FieldDefinition(id="points", name="Points", type=FieldType.NUMBER),
        FieldDefinition(id="due", name="Due Date", type=FieldType.DATE),
        FieldDefinition(id="notes", name="Notes", type=FieldType.TEXT, visible=False),
    ]


@pytest.fixture
def catalog(fields):
    return FieldCatalog(fields)


@pytest.fixture
def rows():
    """Four tasks; r3 leaves most fields empty."""
    return [
        Row(id="r1", values={
            "title": "Login page", "status": "opt_todo", "tags": ["t1"],
            "assignee": "u1", "points": 5, "due": "2024-03-01", "notes": "secret",
        }),
        Row(id="r2", values={
            "title": "Signup flow", "status": "opt_done", "tags": ["t2"],
            "assignee": "u2", "points": 2, "due": "2024-01-15",
        }),
        Row(id="r3", values={
            "title": "Login API", "status": None, "tags": [],
            "points": "x", "due": None,
        }),
        Row(id="r4", values={
            "title": "Dashboard", "status": "opt_progress", "tags": ["t1", "t2"],
            "assignee": "u1", "points": 8, "due": "2024-02-10",
        }),
    ]


@pytest.fixture
def table_data(fields, rows):
    """The catalog and rows in their wire shape, as a data file holds them."""
    return {
        "fields": [f.to_dict() for f in fields],
        "rows": [r.to_dict() for r in rows],
    }
