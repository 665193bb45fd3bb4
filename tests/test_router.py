"""Tests for the ResourceRouter pipeline: list, create, read, update, delete."""

import logging

import pytest

from restforge.auth import IsAdmin, IsAny, IsAuthenticated, IsOwner, PermissionSet
from restforge.core.types import Operation
from restforge.errors import APIError
from restforge.hooks import HookSet
from restforge.masking import FieldMask
from restforge.persistence import MemoryStore
from restforge.router import PopulatePath, ResourceOptions, ResourceRouter, merge_body

from conftest import ADMIN, OTHER, OWNER

OPEN = PermissionSet.uniform(IsAny)

MASK = FieldMask(
    admin_read_fields=["name", "calories", "ownerId", "hidden"],
    owner_read_fields=["name", "calories", "ownerId"],
    auth_read_fields=["name", "calories"],
    anon_read_fields=["name"],
    admin_write_fields=["name", "calories", "ownerId", "hidden"],
    owner_write_fields=["name", "calories"],
    auth_write_fields=["name", "calories", "ownerId", "superPower"],
    anon_write_fields=[],
)


def make_router(model, store=None, **overrides):
    options = {"permissions": OPEN, "allow_anonymous": True, **overrides}
    return ResourceRouter(model, ResourceOptions(**options), store or MemoryStore())


async def seed(router, *bodies):
    return [await router.store.create(router.model, body) for body in bodies]


async def expect_error(coro, status):
    with pytest.raises(APIError) as exc_info:
        await coro
    assert exc_info.value.status == status
    return exc_info.value


# =============================================================================
# Construction
# =============================================================================


class TestConstruction:
    def test_rejects_variant_model(self, food_model):
        with pytest.raises(ValueError, match="is a variant"):
            ResourceRouter(food_model.get_variant("SuperFood"))

    def test_rejects_mismatched_discriminator_key(self, food_model):
        with pytest.raises(ValueError, match="does not match"):
            ResourceRouter(food_model, ResourceOptions(discriminator_key="kind"))

    def test_defaults_to_memory_store(self, food_model):
        assert isinstance(ResourceRouter(food_model).store, MemoryStore)


# =============================================================================
# List
# =============================================================================


class TestList:
    @pytest.mark.asyncio
    async def test_limit_one_returns_newest_with_more(self, food_model):
        router = make_router(food_model, sort="-created")
        await seed(
            router,
            {"name": "Apple", "created": "2024-01-01"},
            {"name": "Kale", "created": "2024-01-03"},
            {"name": "Bread", "created": "2024-01-02"},
            {"name": "Egg", "created": "2024-01-04"},
        )

        result = await router.list({"limit": "1"})
        assert [d["name"] for d in result["data"]] == ["Egg"]
        assert result["more"] is True
        assert result["limit"] == 1
        assert result["page"] is None
        assert result["total"] == 4

        result = await router.list({"limit": "10"})
        assert [d["name"] for d in result["data"]] == ["Egg", "Kale", "Bread", "Apple"]
        assert result["more"] is False

    @pytest.mark.asyncio
    async def test_pages(self, food_model):
        router = make_router(food_model, sort="-created")
        await seed(
            router,
            {"name": "Apple", "created": "2024-01-01"},
            {"name": "Kale", "created": "2024-01-03"},
            {"name": "Bread", "created": "2024-01-02"},
        )

        result = await router.list({"limit": "2", "page": "2"})
        assert [d["name"] for d in result["data"]] == ["Apple"]
        assert result["page"] == 2
        assert result["more"] is False

    @pytest.mark.asyncio
    async def test_filters(self, food_model):
        router = make_router(food_model, query_fields=("calories",))
        await seed(router, {"name": "Apple", "calories": 95}, {"name": "Bread", "calories": 250})

        result = await router.list({"calories": {"$lt": "100"}})
        assert [d["name"] for d in result["data"]] == ["Apple"]
        assert result["total"] == 1

    @pytest.mark.asyncio
    async def test_unlisted_query_param(self, food_model):
        router = make_router(food_model, query_fields=("name",))
        error = await expect_error(router.list({"hidden": "true"}), 400)
        assert error.title == "hidden is not allowed as a query param."

    @pytest.mark.asyncio
    async def test_truncation_without_page_warns(self, food_model, caplog):
        router = make_router(food_model)
        await seed(router, {"name": "a"}, {"name": "b"})
        with caplog.at_level(logging.WARNING):
            result = await router.list({"limit": "1"})
        assert result["more"] is True
        assert "data may be silently truncated" in caplog.text

    @pytest.mark.asyncio
    async def test_query_filter_none_returns_empty_page(self, food_model):
        router = make_router(food_model, query_filter=lambda actor, query: None)
        await seed(router, {"name": "a"})
        assert await router.list({}) == {
            "data": [],
            "more": False,
            "page": None,
            "limit": 100,
            "total": 0,
        }

    @pytest.mark.asyncio
    async def test_query_filter_scopes_results(self, food_model):
        router = make_router(
            food_model, query_filter=lambda actor, query: {"ownerId": actor.id}
        )
        await seed(router, {"name": "mine", "ownerId": "owner1"}, {"name": "theirs", "ownerId": "x"})
        result = await router.list({}, OWNER)
        assert [d["name"] for d in result["data"]] == ["mine"]

    @pytest.mark.asyncio
    async def test_denied_list_is_403(self, food_model):
        router = make_router(food_model, permissions=PermissionSet(list=[IsAdmin]))
        error = await expect_error(router.list({}, OWNER), 403)
        assert error.title == "Access to LIST on Food denied for owner1"

    @pytest.mark.asyncio
    async def test_list_serializes_through_mask(self, food_model):
        router = make_router(food_model, transformer=MASK)
        await seed(router, {"name": "Apple", "calories": 95, "hidden": True})
        result = await router.list({}, None)
        assert result["data"][0]["name"] == "Apple"
        assert set(result["data"][0]) == {"name", "id"}


# =============================================================================
# Authentication and operation-level permissions
# =============================================================================


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_anonymous_rejected_when_not_allowed(self, food_model):
        router = make_router(food_model, allow_anonymous=False)
        error = await expect_error(router.list({}, None), 401)
        assert error.title == "Unauthorized"
        await expect_error(router.create({"name": "a"}, None), 401)

    @pytest.mark.asyncio
    async def test_authenticated_passes(self, food_model):
        router = make_router(food_model, allow_anonymous=False)
        assert (await router.list({}, OWNER))["total"] == 0


class TestOperationPermissions:
    @pytest.mark.asyncio
    async def test_denied_create_is_405(self, food_model):
        router = make_router(food_model, permissions=PermissionSet(create=[IsAuthenticated]))
        error = await expect_error(router.create({"name": "Kale"}, None), 405)
        assert error.title == "Access to CREATE on Food denied for None"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["update", "delete"])
    async def test_unconfigured_write_is_405(self, food_model, operation):
        router = make_router(food_model, permissions=PermissionSet(read=[IsAny]))
        [record] = await seed(router, {"name": "Kale"})
        if operation == "update":
            await expect_error(router.update(record["_id"], {"name": "x"}, ADMIN), 405)
        else:
            await expect_error(router.delete(record["_id"], ADMIN), 405)

    @pytest.mark.asyncio
    async def test_denied_read_is_403(self, food_model):
        router = make_router(food_model, permissions=PermissionSet(read=[IsAdmin]))
        [record] = await seed(router, {"name": "Kale"})
        await expect_error(router.read(record["_id"], OWNER), 403)


# =============================================================================
# Create
# =============================================================================


class TestCreate:
    @pytest.mark.asyncio
    async def test_creates_and_serializes(self, food_model):
        router = make_router(food_model)
        result = await router.create({"name": "Kale", "calories": 30}, OWNER)
        data = result["data"]
        assert data["name"] == "Kale"
        assert data["id"] == data["_id"]
        assert await router.store.count(food_model) == 1

    @pytest.mark.asyncio
    async def test_body_must_be_object(self, food_model):
        router = make_router(food_model)
        error = await expect_error(router.create(["Kale"], OWNER), 400)
        assert error.title == "Create body must be a JSON object"

    @pytest.mark.asyncio
    async def test_validation_error_is_400(self, food_model):
        router = make_router(food_model)
        error = await expect_error(router.create({"calories": 10}, OWNER), 400)
        assert "Path `name` is required." in error.title

    @pytest.mark.asyncio
    async def test_write_mask_denial_is_403(self, food_model):
        router = make_router(food_model, transformer=MASK)
        error = await expect_error(router.create({"name": "Kale", "hidden": True}, OTHER), 403)
        assert error.title == "User of type authenticated cannot write fields: hidden"
        assert await router.store.count(food_model) == 0

    @pytest.mark.asyncio
    async def test_duplicate_id_is_400(self, food_model):
        router = make_router(food_model)
        [record] = await seed(router, {"name": "Kale"})
        error = await expect_error(
            router.create({"name": "Kale2", "_id": record["_id"]}, OWNER), 400
        )
        assert error.title == f"Duplicate _id {record['_id']} in Food"
        assert await router.store.count(food_model) == 1

    @pytest.mark.asyncio
    async def test_pre_create_returning_none_persists_nothing(self, food_model):
        router = make_router(food_model, hooks=HookSet(pre_create=lambda body, ctx: None))
        error = await expect_error(router.create({"name": "Kale"}, OWNER), 403)
        assert error.title == "Pre Create returned null"
        assert await router.store.count(food_model) == 0

    @pytest.mark.asyncio
    async def test_pre_create_replaces_body(self, food_model):
        def stamp_owner(body, ctx):
            return {**body, "ownerId": ctx.actor.id}

        router = make_router(food_model, hooks=HookSet(pre_create=stamp_owner))
        result = await router.create({"name": "Kale"}, OWNER)
        assert result["data"]["ownerId"] == "owner1"

    @pytest.mark.asyncio
    async def test_post_create_receives_stored_record(self, food_model):
        seen = []

        async def after_create(record, ctx):
            seen.append((record["_id"], ctx.operation, ctx.resource))

        router = make_router(food_model, hooks=HookSet(post_create=after_create))
        result = await router.create({"name": "Kale"}, OWNER)
        assert seen == [(result["data"]["_id"], Operation.CREATE, "Food")]

    @pytest.mark.asyncio
    async def test_post_create_error_is_400(self, food_model):
        def broken(record, ctx):
            raise RuntimeError("mailer down")

        router = make_router(food_model, hooks=HookSet(post_create=broken))
        error = await expect_error(router.create({"name": "Kale"}, OWNER), 400)
        assert error.title == "Post Create error: mailer down"

    @pytest.mark.asyncio
    async def test_creates_variant(self, food_model):
        router = make_router(food_model, transformer=MASK)
        result = await router.create(
            {"__t": "SuperFood", "name": "Acai", "superPower": "energy"}, OTHER
        )
        stored = await router.store.get(food_model, result["data"]["id"])
        assert stored["__t"] == "SuperFood"
        assert stored["superPower"] == "energy"

    @pytest.mark.asyncio
    async def test_base_model_drops_variant_fields(self, food_model):
        router = make_router(food_model)
        result = await router.create({"name": "Kale", "superPower": "flight"}, OWNER)
        assert "superPower" not in result["data"]

    @pytest.mark.asyncio
    async def test_unknown_variant_is_500(self, food_model):
        router = make_router(food_model)
        error = await expect_error(router.create({"__t": "Nope", "name": "x"}, OWNER), 500)
        assert error.title == "Could not find variant model for key Nope, base model: Food"


# =============================================================================
# Read
# =============================================================================


class TestRead:
    @pytest.mark.asyncio
    async def test_reads(self, food_model):
        router = make_router(food_model)
        [record] = await seed(router, {"name": "Kale"})
        assert (await router.read(record["_id"], None))["data"]["name"] == "Kale"

    @pytest.mark.asyncio
    async def test_missing_is_404(self, food_model):
        router = make_router(food_model)
        error = await expect_error(router.read("abc", None), 404)
        assert error.title == "Document abc not found for model Food"

    @pytest.mark.asyncio
    async def test_serializes_per_classification(self, food_model):
        router = make_router(food_model, transformer=MASK)
        [record] = await seed(router, {"name": "Kale", "calories": 30, "ownerId": "owner1"})
        assert set((await router.read(record["_id"], None))["data"]) == {"name", "id"}
        assert set((await router.read(record["_id"], OTHER))["data"]) == {"name", "calories", "id"}
        assert "ownerId" in (await router.read(record["_id"], OWNER))["data"]
        assert "hidden" in (await router.read(record["_id"], ADMIN))["data"]

    @pytest.mark.asyncio
    async def test_populates_references(self, food_model, user_model):
        router = make_router(food_model, populate_paths=[PopulatePath("ownerId", ("email",))])
        await router.store.create(user_model, {"_id": "owner1", "email": "o@example.com", "name": "O"})
        [record] = await seed(router, {"name": "Kale", "ownerId": "owner1"})

        data = (await router.read(record["_id"], OWNER))["data"]
        assert data["ownerId"] == {"_id": "owner1", "email": "o@example.com"}

    @pytest.mark.asyncio
    async def test_populate_leaves_dangling_ids(self, food_model, user_model):
        router = make_router(food_model, populate_paths=["ownerId"])
        [record] = await seed(router, {"name": "Kale", "ownerId": "ghost"})
        assert (await router.read(record["_id"], None))["data"]["ownerId"] == "ghost"

    @pytest.mark.asyncio
    async def test_populate_non_reference_is_400(self, food_model):
        router = make_router(food_model, populate_paths=["name"])
        [record] = await seed(router, {"name": "Kale"})
        error = await expect_error(router.read(record["_id"], None), 400)
        assert error.title.startswith("Populate error:")


# =============================================================================
# Update
# =============================================================================


class TestUpdate:
    @pytest.mark.asyncio
    async def test_merges_into_stored_record(self, food_model):
        router = make_router(food_model)
        [record] = await seed(router, {"name": "Kale", "calories": 30})
        result = await router.update(record["_id"], {"calories": 35}, OWNER)
        assert result["data"]["name"] == "Kale"
        assert result["data"]["calories"] == 35

    @pytest.mark.asyncio
    async def test_dotted_keys_set_nested_values(self, food_model):
        router = make_router(food_model)
        [record] = await seed(router, {"name": "Kale", "source": {"name": "Farm", "href": "/f"}})
        result = await router.update(record["_id"], {"source.name": "Market"}, OWNER)
        assert result["data"]["source"] == {"name": "Market", "href": "/f"}

    @pytest.mark.asyncio
    async def test_object_level_denial_is_403(self, food_model):
        router = make_router(food_model, permissions=PermissionSet(update=[IsOwner]))
        [record] = await seed(router, {"name": "Kale", "ownerId": "owner1"})
        error = await expect_error(router.update(record["_id"], {"name": "x"}, OTHER), 403)
        assert error.title == f"Access to UPDATE on Food:{record['_id']} denied for other1"
        assert (await router.update(record["_id"], {"name": "x"}, OWNER))["data"]["name"] == "x"

    @pytest.mark.asyncio
    async def test_owner_cannot_reassign(self, food_model):
        router = make_router(food_model, transformer=MASK)
        [record] = await seed(router, {"name": "Kale", "ownerId": "owner1"})
        error = await expect_error(router.update(record["_id"], {"ownerId": "x"}, OWNER), 403)
        assert error.title == "User of type owner cannot write fields: ownerId"
        assert (await router.store.get(food_model, record["_id"]))["ownerId"] == "owner1"

    @pytest.mark.asyncio
    async def test_hooks_see_original_and_body(self, food_model):
        seen = {}

        def pre_update(body, ctx):
            seen["original"] = ctx.original["calories"]
            return {**body, "hidden": True}

        def post_update(record, body, ctx):
            seen["body"] = body
            seen["record"] = record["calories"]

        router = make_router(
            food_model, hooks=HookSet(pre_update=pre_update, post_update=post_update)
        )
        [record] = await seed(router, {"name": "Kale", "calories": 30})
        result = await router.update(record["_id"], {"calories": 35}, OWNER)

        assert seen == {"original": 30, "body": {"calories": 35, "hidden": True}, "record": 35}
        assert result["data"]["hidden"] is True

    @pytest.mark.asyncio
    async def test_pre_update_error_is_400(self, food_model):
        def broken(body, ctx):
            raise ValueError("locked")

        router = make_router(food_model, hooks=HookSet(pre_update=broken))
        [record] = await seed(router, {"name": "Kale"})
        error = await expect_error(router.update(record["_id"], {"name": "x"}, OWNER), 400)
        assert error.title == "Pre Update error: locked"

    @pytest.mark.asyncio
    async def test_pre_update_returning_none_persists_nothing(self, food_model):
        router = make_router(food_model, hooks=HookSet(pre_update=lambda body, ctx: None))
        [record] = await seed(router, {"name": "Kale"})
        error = await expect_error(router.update(record["_id"], {"name": "x"}, OWNER), 403)
        assert error.title == "Pre Update returned null"
        assert (await router.store.get(food_model, record["_id"]))["name"] == "Kale"

    @pytest.mark.asyncio
    async def test_variant_record_requires_variant_key(self, food_model):
        router = make_router(food_model)
        created = await router.create({"__t": "SuperFood", "name": "Acai"}, OWNER)
        id = created["data"]["id"]

        error = await expect_error(router.update(id, {"name": "x"}, OWNER), 404)
        assert error.title == f"Document {id} not found for model Food"

        result = await router.update(id, {"__t": "SuperFood", "superPower": "energy"}, OWNER)
        assert result["data"]["superPower"] == "energy"
        assert result["data"]["__t"] == "SuperFood"

    @pytest.mark.asyncio
    async def test_base_record_rejects_variant_key(self, food_model):
        router = make_router(food_model)
        [record] = await seed(router, {"name": "Kale"})
        await expect_error(router.update(record["_id"], {"__t": "SuperFood"}, OWNER), 404)

    @pytest.mark.asyncio
    async def test_missing_is_404(self, food_model):
        router = make_router(food_model)
        await expect_error(router.update("abc", {"name": "x"}, OWNER), 404)


# =============================================================================
# Delete
# =============================================================================


class TestDelete:
    @pytest.mark.asyncio
    async def test_hard_delete(self, food_model):
        router = make_router(food_model)
        [record] = await seed(router, {"name": "Kale"})
        assert await router.delete(record["_id"], OWNER) is None
        assert await router.store.get(food_model, record["_id"]) is None

    @pytest.mark.asyncio
    async def test_pre_delete_none_aborts(self, food_model):
        router = make_router(food_model, hooks=HookSet(pre_delete=lambda record, ctx: None))
        [record] = await seed(router, {"name": "Kale"})
        error = await expect_error(router.delete(record["_id"], OWNER), 403)
        assert error.title == "Pre Delete returned null"
        assert await router.store.get(food_model, record["_id"]) is not None

    @pytest.mark.asyncio
    async def test_post_delete_receives_record(self, food_model):
        seen = []
        router = make_router(
            food_model, hooks=HookSet(post_delete=lambda record, ctx: seen.append(record["name"]))
        )
        [record] = await seed(router, {"name": "Kale"})
        await router.delete(record["_id"], OWNER)
        assert seen == ["Kale"]

    @pytest.mark.asyncio
    async def test_variant_delete_requires_key(self, food_model):
        router = make_router(food_model)
        created = await router.create({"__t": "SuperFood", "name": "Acai"}, OWNER)
        id = created["data"]["id"]
        await expect_error(router.delete(id, OWNER), 404)
        await router.delete(id, OWNER, {"__t": "SuperFood"})
        assert await router.store.get(food_model, id) is None


class TestPut:
    def test_put_is_rejected(self, food_model):
        router = make_router(food_model)
        with pytest.raises(APIError) as exc_info:
            router.put("abc", OWNER)
        assert exc_info.value.status == 400
        assert exc_info.value.title == "PUT is not supported."

    def test_put_requires_authentication(self, food_model):
        router = make_router(food_model, allow_anonymous=False)
        with pytest.raises(APIError) as exc_info:
            router.put("abc")
        assert exc_info.value.status == 401


class TestSoftDelete:
    @pytest.mark.asyncio
    async def test_soft_delete_hides_record(self, soft_food_model):
        router = make_router(soft_food_model, query_fields=("deleted",))
        kale, apple = await seed(router, {"name": "Kale"}, {"name": "Apple"})

        await router.delete(kale["_id"], OWNER)

        assert (await router.store.get(soft_food_model, kale["_id"]))["deleted"] is True
        listed = await router.list({})
        assert [d["name"] for d in listed["data"]] == ["Apple"]
        assert listed["total"] == 1

        error = await expect_error(router.read(kale["_id"], OWNER), 404)
        assert error.meta == {"deleted": "true"}

    @pytest.mark.asyncio
    async def test_explicit_deleted_filter_wins(self, soft_food_model):
        router = make_router(soft_food_model, query_fields=("deleted",))
        [kale] = await seed(router, {"name": "Kale"})
        await router.delete(kale["_id"], OWNER)
        listed = await router.list({"deleted": "true"})
        assert [d["name"] for d in listed["data"]] == ["Kale"]

    @pytest.mark.asyncio
    async def test_soft_deleted_cannot_be_updated(self, soft_food_model):
        router = make_router(soft_food_model)
        [kale] = await seed(router, {"name": "Kale"})
        await router.delete(kale["_id"], OWNER)
        await expect_error(router.update(kale["_id"], {"name": "x"}, OWNER), 404)


# =============================================================================
# merge_body
# =============================================================================


class TestMergeBody:
    def test_does_not_mutate_record(self):
        record = {"name": "Kale", "source": {"name": "Farm"}}
        merged = merge_body(record, {"source.href": "/f", "calories": 3})
        assert merged == {"name": "Kale", "source": {"name": "Farm", "href": "/f"}, "calories": 3}
        assert record == {"name": "Kale", "source": {"name": "Farm"}}

