"""
Tests for CatalogRepository transactional behavior.
"""
import uuid
from unittest import mock

import pytest
from django.db import OperationalError

from catalog_engine.exceptions import DatabaseUnavailable, NotFound, ValidationError
from catalog_engine.models import Category, Post, PostCategory


def names(post):
    return [c.name for c in post.category_list]


class TestCreatePost:

    def test_creates_post_and_links(self, repository, tech, design):
        post = repository.create_post("X", "Y", category_ids=[tech.pk, design.pk])

        assert post.title == "X"
        assert post.updated_at is None
        assert names(post) == ["Design", "Tech"]
        assert PostCategory.objects.filter(post=post).count() == 2

    def test_without_categories(self, repository):
        post = repository.create_post("X", "Y")
        assert post.category_list == []

    def test_duplicate_ids_linked_once(self, repository, tech):
        post = repository.create_post("X", "Y", category_ids=[tech.pk, str(tech.pk)])
        assert PostCategory.objects.filter(post=post).count() == 1

    def test_empty_title_or_content(self, repository):
        with pytest.raises(ValidationError) as excinfo:
            repository.create_post("", "", category_ids=[])
        assert set(excinfo.value.fields) == {"title", "content"}
        assert Post.objects.count() == 0

    def test_all_or_nothing(self, repository):
        valid = [repository.create_category(f"Cat {i}").pk for i in range(3)]
        missing = uuid.uuid4()

        with pytest.raises(NotFound) as excinfo:
            repository.create_post("X", "Y", category_ids=valid + [missing])

        assert excinfo.value.entity == "Category"
        assert excinfo.value.identifier == missing
        assert Post.objects.count() == 0
        assert PostCategory.objects.count() == 0

    def test_malformed_category_id(self, repository):
        with pytest.raises(NotFound):
            repository.create_post("X", "Y", category_ids=["not-a-uuid"])
        assert Post.objects.count() == 0

    def test_cover_image_key_kept(self, repository):
        post = repository.create_post("X", "Y", cover_image_key="private/" + "a" * 64)
        assert post.cover_image_key == "private/" + "a" * 64


class TestUpdatePost:

    @pytest.fixture
    def extra(self, repository):
        return repository.create_category("Extra")

    @pytest.mark.parametrize(
        "before, after",
        [
            (["tech"], ["tech", "design"]),  # add only
            (["tech", "design"], ["design"]),  # remove only
            (["tech", "extra"], ["design", "extra"]),  # mixed
            (["tech"], []),  # clear
        ],
    )
    def test_replaces_category_set(self, repository, tech, design, extra, before, after):
        by_name = {"tech": tech.pk, "design": design.pk, "extra": extra.pk}
        post = repository.create_post("X", "Y", category_ids=[by_name[n] for n in before])

        repository.update_post(
            post.pk, "X", "Y", None, category_ids=[by_name[n] for n in after]
        )

        assert repository.get_post(post.pk).category_ids == {by_name[n] for n in after}
        assert PostCategory.objects.filter(post=post).count() == len(after)

    def test_updates_fields_and_timestamp(self, repository, tech):
        post = repository.create_post("X", "Y", category_ids=[tech.pk])

        updated = repository.update_post(post.pk, "New", "Body", "private/" + "b" * 64, [tech.pk])

        assert updated.title == "New"
        assert updated.content == "Body"
        assert updated.cover_image_key == "private/" + "b" * 64
        assert updated.updated_at is not None
        assert updated.created_at == post.created_at

    def test_unchanged_links_not_rewritten(self, repository, tech):
        post = repository.create_post("X", "Y", category_ids=[tech.pk])
        link_pk = PostCategory.objects.get(post=post).pk

        repository.update_post(post.pk, "X", "Y", None, [tech.pk])

        assert PostCategory.objects.get(post=post).pk == link_pk

    def test_missing_post(self, repository):
        with pytest.raises(NotFound) as excinfo:
            repository.update_post(uuid.uuid4(), "X", "Y", None, [])
        assert excinfo.value.entity == "Post"

    def test_missing_category_rolls_back(self, repository, tech):
        post = repository.create_post("X", "Y", category_ids=[tech.pk])

        with pytest.raises(NotFound):
            repository.update_post(post.pk, "Changed", "Y", None, [uuid.uuid4()])

        post = repository.get_post(post.pk)
        assert post.title == "X"
        assert post.updated_at is None
        assert names(post) == ["Tech"]


class TestDelete:

    def test_delete_post_removes_links(self, repository, tech):
        post = repository.create_post("X", "Y", category_ids=[tech.pk])

        repository.delete_post(post.pk)

        assert not Post.objects.filter(pk=post.pk).exists()
        assert PostCategory.objects.count() == 0
        assert Category.objects.filter(pk=tech.pk).exists()

    def test_delete_missing_post(self, repository):
        with pytest.raises(NotFound):
            repository.delete_post(uuid.uuid4())

    def test_delete_category_cascades_to_links(self, repository, tech, design):
        post = repository.create_post("X", "Y", category_ids=[tech.pk, design.pk])

        repository.delete_category(tech.pk)

        post = repository.get_post(post.pk)
        assert names(post) == ["Design"]
        assert tech.pk not in post.category_ids

    def test_delete_missing_category(self, repository):
        with pytest.raises(NotFound):
            repository.delete_category(uuid.uuid4())


class TestCategories:

    def test_name_too_short(self, repository):
        with pytest.raises(ValidationError):
            repository.create_category("a")

    def test_name_too_long(self, repository):
        with pytest.raises(ValidationError):
            repository.create_category("x" * 17)

    def test_name_bounds_inclusive(self, repository):
        repository.create_category("ab")
        repository.create_category("x" * 16)
        assert Category.objects.count() == 2

    def test_duplicate_name(self, repository):
        repository.create_category("プログラミング")
        with pytest.raises(ValidationError) as excinfo:
            repository.create_category("プログラミング")
        assert excinfo.value.fields == {"name": ["duplicate"]}
        assert Category.objects.count() == 1

    def test_uniqueness_case_sensitive_by_default(self, repository):
        repository.create_category("Tech")
        repository.create_category("tech")
        assert Category.objects.count() == 2

    def test_uniqueness_case_insensitive_setting(self, repository, settings):
        settings.CATALOG_ENGINE = {"CATEGORY_NAME_CASE_INSENSITIVE": True}
        repository.create_category("Tech")
        with pytest.raises(ValidationError):
            repository.create_category("tech")

    def test_list_categories(self, repository, tech, design):
        assert [c.name for c in repository.list_categories()] == ["Design", "Tech"]

    def test_get_category(self, repository, tech):
        assert repository.get_category(tech.pk) == tech
        with pytest.raises(NotFound):
            repository.get_category(uuid.uuid4())


class TestReads:

    def test_list_posts_newest_first(self, repository):
        first = repository.create_post("First", "a")
        second = repository.create_post("Second", "b")
        assert [p.pk for p in repository.list_posts()] == [second.pk, first.pk]

    def test_get_post_missing(self, repository):
        with pytest.raises(NotFound):
            repository.get_post(uuid.uuid4())

    def test_get_post_malformed_id(self, repository):
        with pytest.raises(NotFound):
            repository.get_post("42")

    def test_database_failure(self, repository):
        with mock.patch.object(
            Category.objects, "using", side_effect=OperationalError("connection lost")
        ):
            with pytest.raises(DatabaseUnavailable):
                repository.list_categories()


def test_scenario(repository):
    tech = repository.create_category("Tech")
    design = repository.create_category("Design")
    post = repository.create_post("X", "Y", category_ids=[tech.pk])

    posts = repository.list_posts()
    assert len(posts) == 1
    assert names(posts[0]) == ["Tech"]

    repository.update_post(post.pk, "X", "Y", None, category_ids=[design.pk])
    assert names(repository.get_post(post.pk)) == ["Design"]

    repository.delete_category(design.pk)
    post = repository.get_post(post.pk)
    assert post.category_list == []
    assert post.title == "X"
