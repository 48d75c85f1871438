from plugins.group import get_member, get_members, manager
from plugins.group.data_source import MemberType


def test_add_member_generates_id():
    member = manager.add_member("c1", "香澄", avatar="https://example.com/k.png")

    assert member.member_id.startswith("char_")
    assert member.type == MemberType.CUSTOM
    assert get_member("c1", "香澄").avatar == "https://example.com/k.png"


def test_add_member_with_explicit_id_and_type():
    member = manager.add_member(
        "c1", "有咲", member_type=MemberType.PRESET, member_id="arisa"
    )

    assert member.member_id == "arisa"
    assert get_member("c1", "有咲").type == MemberType.PRESET


def test_names_are_unique_per_channel():
    assert manager.add_member("c1", "香澄") is not None
    assert manager.add_member("c1", "香澄") is None
    assert manager.add_member("c2", "香澄") is not None


def test_members_are_listed_per_channel():
    manager.add_member("c1", "b")
    manager.add_member("c1", "a")
    manager.add_member("c2", "c")

    assert [member.name for member in get_members("c1")] == ["a", "b"]
    assert [member.name for member in get_members("c2")] == ["c"]
    assert get_members("c3") == []


def test_remove_member():
    manager.add_member("c1", "香澄")

    assert manager.remove_member("c1", "香澄")
    assert not manager.remove_member("c1", "香澄")
    assert get_member("c1", "香澄") is None


def test_clear_channel():
    manager.add_member("c1", "a")
    manager.add_member("c1", "b")
    manager.add_member("c2", "c")

    assert manager.clear_channel("c1") == 2
    assert get_members("c1") == []
    assert len(get_members("c2")) == 1
