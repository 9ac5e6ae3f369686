# tests/test_username.py
import pytest

from app.db.crud.user import generate_unique_username, username_base


@pytest.mark.parametrize(
    "name, email, expected",
    [
        ("Nur Aina", "x@mindcare.my", "nur.aina"),
        ("Dr. Lee  Wei Ming", "x@mindcare.my", "dr.lee.wei.ming"),
        ("Zoë O'Brien", "x@mindcare.my", "zo.obrien"),
        ("李明", "li.ming@mindcare.my", "li.ming"),
        ("", "", "user"),
    ],
)
def test_username_base(name, email, expected):
    assert username_base(name, email) == expected


async def test_unique_username_adds_suffix_when_taken(session_factory, make_user):
    await make_user(username="nur.aina")
    async with session_factory() as db:
        username = await generate_unique_username(db, "Nur Aina", "nur@mindcare.my")
    assert username != "nur.aina"
    assert username.startswith("nur.aina")
    assert username[len("nur.aina"):].isdigit()
