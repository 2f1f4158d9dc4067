from app.trimtime.client.dispatch import InlineDispatcher
from app.trimtime.client.remote_store import CollectionGateway
from app.trimtime.schemas.catalog import Customer
from app.trimtime.services.reconciler import (
    CustomerReconciler,
    EntityReconciler,
    ProductReconciler,
    StaffReconciler,
    removed_ids,
)
from tests.register_helpers import ADMIN, BARBER, RecordingStore, product


def _products(store, dispatcher, items=()):
    return ProductReconciler(CollectionGateway(store, "products"), dispatcher, items)


def test_delete_is_issued_before_upsert():
    store = RecordingStore()
    reconciler = _products(store, InlineDispatcher(), [product("1"), product("2")])

    result = reconciler.reconcile([product("2"), product("3")])

    assert store.calls == [("delete", "products", ["1"]), ("upsert", "products", ["2", "3"])]
    assert result.removed_ids == ("1",)
    assert [p.id for p in reconciler.items] == ["2", "3"]


def test_second_identical_reconcile_only_upserts():
    store = RecordingStore()
    reconciler = _products(store, InlineDispatcher(), [product("1")])
    desired = [product("1"), product("2")]

    reconciler.reconcile(desired)
    store.calls.clear()
    reconciler.reconcile(desired)

    assert store.calls == [("upsert", "products", ["1", "2"])]
    assert [p.id for p in reconciler.items] == ["1", "2"]


def test_emptying_a_collection_only_deletes():
    store = RecordingStore()
    reconciler = _products(store, InlineDispatcher(), [product("1"), product("2")])

    reconciler.reconcile([])

    assert store.calls == [("delete", "products", ["1", "2"])]
    assert reconciler.items == []


def test_nothing_to_do_sends_nothing():
    store = RecordingStore()
    reconciler = _products(store, InlineDispatcher())

    reconciler.reconcile([])

    assert store.calls == []


def test_remote_failure_keeps_local_state_and_still_upserts():
    store = RecordingStore()
    store.fail("products", "delete")
    dispatcher = InlineDispatcher()
    reconciler = _products(store, dispatcher, [product("1"), product("2")])

    reconciler.reconcile([product("2", stock=4)])

    assert reconciler.get("2").stock == 4
    assert reconciler.get("1") is None
    assert [call[0] for call in store.calls] == ["delete", "upsert"]
    assert len(dispatcher.failures) == 1
    assert dispatcher.failures[0].operation == "delete"


def test_readding_a_removed_id_lets_the_new_record_win():
    store = RecordingStore({"products": [product("1", price="5").model_dump(mode="json")]})
    reconciler = _products(store, InlineDispatcher(), [product("1", price="5")])

    reconciler.reconcile([product("1", price="9")])

    assert store.tables["products"]["1"]["price"] == "9"


def test_removed_ids_keeps_first_seen_order():
    prev = [product("b"), product("a"), product("b"), product("c")]

    assert removed_ids(prev, [product("c")]) == ("b", "a")


def test_customer_add_reconciles_with_the_new_entry():
    store = RecordingStore()
    existing = Customer(id="C1", name="Ali")
    reconciler = CustomerReconciler(CollectionGateway(store, "customers"), InlineDispatcher(), [existing])

    reconciler.add(Customer(id="C2", name="Sara", phone="555"))

    assert [c.id for c in reconciler.items] == ["C1", "C2"]
    assert store.calls == [("upsert", "customers", ["C1", "C2"])]


def test_one_routine_serves_any_collection():
    store = RecordingStore()
    reconciler = EntityReconciler(CollectionGateway(store, "services"), InlineDispatcher())

    reconciler.reconcile([product("S9")])

    assert store.calls == [("upsert", "services", ["S9"])]


def test_staff_reconcile_refreshes_logged_in_identity(session, auth_store):
    session.login("barber", "barber123", [ADMIN, BARBER])
    store = RecordingStore()
    reconciler = StaffReconciler(
        CollectionGateway(store, "staff"), InlineDispatcher(), [ADMIN, BARBER], session=session
    )
    renamed = BARBER.model_copy(update={"name": "Barber Prime"})

    reconciler.reconcile([ADMIN, renamed])

    assert session.operator.name == "Barber Prime"
    assert auth_store.load().user.name == "Barber Prime"


def test_staff_reconcile_leaves_identity_when_record_removed(session, auth_store):
    session.login("barber", "barber123", [ADMIN, BARBER])
    reconciler = StaffReconciler(
        CollectionGateway(RecordingStore(), "staff"), InlineDispatcher(), [ADMIN, BARBER], session=session
    )

    reconciler.reconcile([ADMIN.model_copy(update={"name": "Boss"})])

    assert session.operator == BARBER
    assert auth_store.load().user == BARBER
