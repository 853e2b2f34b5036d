"""
Тесты для Service Layer.

Проверяем бизнес-логику:
- Создание тегов и вычисление путей
- Ответы уровня / пути / поддерева
- Деградацию has_children при ошибке хранилища
- Пересчёт путей (repath)
- Привязку тегов к вопросам (всё или ничего, снимки путей)
"""

import logging

import pytest
from sqlalchemy import select

from tag_hierarchy.core.config import settings
from tag_hierarchy.core.exceptions import InfrastructureError, InvalidReferenceError, NotFoundError
from tag_hierarchy.models import AssociationStatus, HierarchicalTag, QuestionHierarchicalTagRel, TagStatus
from tag_hierarchy.services import QuestionTagService


async def fail_storage(*args, **kwargs):
    raise InfrastructureError("hierarchical_tag.count", RuntimeError("connection lost"))


# ============================================================================
# CREATE / READ
# ============================================================================


@pytest.mark.asyncio
async def test_create_tag_uses_id_generator(tag_service, test_db):
    """Test: ID берётся из генератора, level/path вычисляются."""
    root = await tag_service.create_tag("customer", "customer", "Customer", sort_order=1)
    child = await tag_service.create_tag("backend", "backend", "Backend", parent_id=root.id)
    await test_db.commit()

    assert (root.id, root.level, root.path) == ("1", 0, "#Customer")
    assert (child.id, child.parent_id, child.level, child.path) == ("2", "1", 1, "#Customer#Backend")
    assert child.has_children is False
    assert child.children is None


@pytest.mark.asyncio
async def test_create_tag_under_missing_parent(tag_service):
    with pytest.raises(InvalidReferenceError) as exc_info:
        await tag_service.create_tag("java", "java", "Java", parent_id="999")

    assert exc_info.value.parent_id == "999"


@pytest.mark.asyncio
async def test_create_tag_logs_path(tag_service, caplog):
    """Test: создание тега пишет в лог вычисленный path."""
    with caplog.at_level(logging.INFO, logger="tag_hierarchy.services.tag"):
        await tag_service.create_tag("customer", "customer", "Customer")

    record = next(r for r in caplog.records if r.getMessage() == "Hierarchical tag created")
    assert record.path == "#Customer"
    assert record.level == 0


@pytest.mark.asyncio
async def test_get_tag_and_by_slug(tag_service, sample_tree):
    backend = await tag_service.get_tag(sample_tree["backend"].id)
    by_slug = await tag_service.get_tag_by_slug("java-fullstack")

    assert backend.display_name == "Backend"
    assert backend.has_children is True
    assert by_slug.path == "#Customer#FullStack#Java"

    with pytest.raises(NotFoundError):
        await tag_service.get_tag("404")
    with pytest.raises(NotFoundError, match="slug 'nope'"):
        await tag_service.get_tag_by_slug("nope")


# ============================================================================
# LEVEL / PATH
# ============================================================================


@pytest.mark.asyncio
async def test_list_level_roots(tag_service, sample_tree):
    """Test: корни по sort_order, has_children у каждого."""
    roots = await tag_service.list_level(None)

    assert [(t.display_name, t.has_children) for t in roots] == [
        ("Customer", True),
        ("Internal", False),
    ]
    assert all(t.level == 0 and t.children is None for t in roots)


@pytest.mark.asyncio
async def test_list_level_children(tag_service, sample_tree):
    children = await tag_service.list_level(sample_tree["backend"].id)

    assert [t.display_name for t in children] == ["Node.js", "Java", "Python"]
    assert {t.parent_id for t in children} == {sample_tree["backend"].id}
    assert await tag_service.list_level("404") == []


@pytest.mark.asyncio
async def test_list_level_degrades_has_children(tag_service, sample_tree, monkeypatch, caplog):
    """Test: ошибка has_children → False + ERROR в логе, список не падает."""
    monkeypatch.setattr(tag_service.tag_repo, "has_children", fail_storage)

    with caplog.at_level(logging.ERROR):
        roots = await tag_service.list_level(None)

    assert [t.display_name for t in roots] == ["Customer", "Internal"]
    assert all(t.has_children is False for t in roots)
    assert sum("has_children computation failed" in r.getMessage() for r in caplog.records) == 2


@pytest.mark.asyncio
async def test_get_path(tag_service, sample_tree):
    """Test: цепочка Customer → Backend → Java."""
    result = await tag_service.get_path(sample_tree["java"].id)

    assert result.path == "#Customer#Backend#Java"
    assert result.display_path == result.path
    assert [t.display_name for t in result.tags] == ["Customer", "Backend", "Java"]
    assert [t.has_children for t in result.tags] == [True, True, False]


@pytest.mark.asyncio
async def test_get_path_of_root(tag_service, sample_tree):
    result = await tag_service.get_path(sample_tree["internal"].id)

    assert result.path == "#Internal"
    assert [t.id for t in result.tags] == [sample_tree["internal"].id]


@pytest.mark.asyncio
async def test_get_path_missing(tag_service):
    with pytest.raises(NotFoundError):
        await tag_service.get_path("404")


# ============================================================================
# UPDATE
# ============================================================================


@pytest.mark.asyncio
async def test_update_tag_leaves_paths_stale(tag_service, sample_tree, test_db):
    """Test: после смены display_name пути тега и потомков не меняются."""
    updated = await tag_service.update_tag(
        sample_tree["backend"].id, "server", "server", "Server", description="Server side"
    )
    await test_db.commit()

    assert updated.display_name == "Server"
    assert updated.slug_name == "server"
    assert updated.path == "#Customer#Backend"
    assert updated.sort_order == 2

    java = await tag_service.get_tag(sample_tree["java"].id)
    assert java.path == "#Customer#Backend#Java"


@pytest.mark.asyncio
async def test_update_tag_missing(tag_service):
    with pytest.raises(NotFoundError):
        await tag_service.update_tag("404", "x", "x", "X")


# ============================================================================
# SUBTREE
# ============================================================================


@pytest.mark.asyncio
async def test_get_tree_full(tag_service, sample_tree):
    tree = await tag_service.get_tree()

    customer, internal = tree
    assert [c.display_name for c in customer.children] == ["FullStack", "Backend"]
    fullstack, backend = customer.children
    assert [c.path for c in fullstack.children] == ["#Customer#FullStack#Java"]
    assert [c.display_name for c in backend.children] == ["Node.js", "Java", "Python"]
    assert all(c.children == [] and c.has_children is False for c in backend.children)
    assert internal.children == []
    assert internal.has_children is False


@pytest.mark.asyncio
async def test_get_tree_depth_one_is_level(tag_service, sample_tree):
    """Test: max_depth=1 - только уровень, has_children считается."""
    tree = await tag_service.get_tree(None, max_depth=1)

    assert [(t.display_name, t.has_children, t.children) for t in tree] == [
        ("Customer", True, None),
        ("Internal", False, None),
    ]


@pytest.mark.asyncio
async def test_get_tree_from_parent(tag_service, sample_tree):
    tree = await tag_service.get_tree(sample_tree["customer"].id, max_depth=1)

    assert [t.display_name for t in tree] == ["FullStack", "Backend"]
    assert all(t.has_children for t in tree)


@pytest.mark.asyncio
async def test_get_tree_depth_capped_by_settings(tag_service, sample_tree, monkeypatch):
    monkeypatch.setattr(settings, "TREE_MAX_DEPTH", 2)

    tree = await tag_service.get_tree(None, max_depth=50)

    backend = tree[0].children[1]
    assert backend.display_name == "Backend"
    assert backend.children is None
    assert backend.has_children is True


@pytest.mark.asyncio
async def test_get_tree_node_budget(tag_service, sample_tree, monkeypatch):
    """Test: не больше TREE_MAX_NODES узлов в ответе."""
    monkeypatch.setattr(settings, "TREE_MAX_NODES", 3)

    tree = await tag_service.get_tree()

    def walk(items):
        for item in items:
            yield item
            yield from walk(item.children or [])

    assert len(list(walk(tree))) == 3
    assert [c.display_name for c in tree[0].children] == ["FullStack"]


@pytest.mark.asyncio
async def test_get_tree_rejects_zero_depth(tag_service):
    with pytest.raises(ValueError):
        await tag_service.get_tree(None, max_depth=0)


@pytest.mark.asyncio
async def test_get_tree_degrades_frontier_counts(tag_service, sample_tree, monkeypatch):
    monkeypatch.setattr(tag_service.tag_repo, "count_children", fail_storage)

    tree = await tag_service.get_tree(None, max_depth=1)

    assert [t.has_children for t in tree] == [False, False]


# ============================================================================
# REPATH
# ============================================================================


@pytest.mark.asyncio
async def test_repath_after_rename(tag_service, sample_tree, test_db):
    """Test: Backend → Server, пересчёт тега и трёх детей."""
    backend_id = sample_tree["backend"].id
    await tag_service.update_tag(backend_id, "server", "server", "Server")

    changed = await tag_service.repath_subtree(backend_id)
    await test_db.commit()

    assert changed == 4
    result = await tag_service.get_path(sample_tree["python"].id)
    assert result.path == "#Customer#Server#Python"
    untouched = await tag_service.get_tag(sample_tree["java-fullstack"].id)
    assert untouched.path == "#Customer#FullStack#Java"

    assert await tag_service.repath_subtree(backend_id) == 0


@pytest.mark.asyncio
async def test_repath_root_rename(tag_service, sample_tree, test_db):
    customer_id = sample_tree["customer"].id
    await tag_service.update_tag(customer_id, "client", "client", "Client")

    changed = await tag_service.repath_subtree(customer_id)
    await test_db.commit()

    # Customer + FullStack + FullStack/Java + Backend + 3 children
    assert changed == 7
    java = await tag_service.get_tag(sample_tree["java"].id)
    assert (java.level, java.path) == (2, "#Client#Backend#Java")


@pytest.mark.asyncio
async def test_repath_missing(tag_service):
    with pytest.raises(NotFoundError):
        await tag_service.repath_subtree("404")


# ============================================================================
# QUESTION ASSOCIATIONS
# ============================================================================


@pytest.mark.asyncio
async def test_bind_tags(test_db, sample_tree):
    """Test: привязка в порядке запроса, path - снимок."""
    service = QuestionTagService(test_db)

    items = await service.bind_tags("Q1", [sample_tree["java"].id, sample_tree["customer"].id])
    await test_db.commit()

    assert [(t.display_name, t.path) for t in items] == [
        ("Java", "#Customer#Backend#Java"),
        ("Customer", "#Customer"),
    ]
    assert items[1].has_children is True


@pytest.mark.asyncio
async def test_bind_tags_replaces_previous_set(test_db, sample_tree):
    """Test: старые связи помечаются REMOVED и не возвращаются."""
    service = QuestionTagService(test_db)

    await service.bind_tags("Q1", [sample_tree["java"].id])
    items = await service.bind_tags("Q1", [sample_tree["python"].id])
    await test_db.commit()

    assert [t.display_name for t in items] == ["Python"]

    result = await test_db.execute(
        select(QuestionHierarchicalTagRel)
        .where(QuestionHierarchicalTagRel.question_id == "Q1")
        .order_by(QuestionHierarchicalTagRel.id)
    )
    rows = result.scalars().all()
    assert [(r.hierarchical_tag_id, r.status) for r in rows] == [
        (sample_tree["java"].id, AssociationStatus.REMOVED),
        (sample_tree["python"].id, AssociationStatus.ACTIVE),
    ]


@pytest.mark.asyncio
async def test_bind_empty_list_unbinds_all(test_db, sample_tree):
    service = QuestionTagService(test_db)

    await service.bind_tags("Q1", [sample_tree["java"].id])
    items = await service.bind_tags("Q1", [])

    assert items == []
    assert await service.list_for_entity("Q1") == []


@pytest.mark.asyncio
async def test_bind_duplicates_kept(test_db, sample_tree):
    """Test: дубликаты в tag_ids не схлопываются."""
    service = QuestionTagService(test_db)
    java_id = sample_tree["java"].id

    items = await service.bind_tags("Q1", [java_id, java_id])

    assert [t.id for t in items] == [java_id, java_id]


@pytest.mark.asyncio
async def test_bind_is_all_or_nothing(test_db, sample_tree):
    """Test: один несуществующий тег → ошибка, прежний набор не тронут."""
    service = QuestionTagService(test_db)

    await service.bind_tags("Q1", [sample_tree["java"].id])
    await test_db.commit()

    with pytest.raises(NotFoundError):
        await service.bind_tags("Q1", [sample_tree["python"].id, "404"])

    items = await service.list_for_entity("Q1")
    assert [t.id for t in items] == [sample_tree["java"].id]


@pytest.mark.asyncio
async def test_snapshot_survives_repath(test_db, tag_service, sample_tree):
    """Test: repath не меняет путь в уже существующей связи."""
    service = QuestionTagService(test_db)
    backend_id = sample_tree["backend"].id

    await service.bind_tags("Q1", [sample_tree["java"].id])
    await tag_service.update_tag(backend_id, "server", "server", "Server")
    await tag_service.repath_subtree(backend_id)
    await test_db.commit()

    items = await service.list_for_entity("Q1")
    assert items[0].path == "#Customer#Backend#Java"

    rebound = await service.bind_tags("Q1", [sample_tree["java"].id])
    assert rebound[0].path == "#Customer#Server#Java"


@pytest.mark.asyncio
async def test_list_skips_deleted_tags(test_db, sample_tree):
    service = QuestionTagService(test_db)

    await service.bind_tags("Q1", [sample_tree["java"].id, sample_tree["python"].id])
    java = await test_db.get(HierarchicalTag, sample_tree["java"].id)
    java.status = TagStatus.DELETED
    await test_db.commit()

    items = await service.list_for_entity("Q1")
    assert [t.display_name for t in items] == ["Python"]
