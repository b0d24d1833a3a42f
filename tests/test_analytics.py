from truckmap.services import analytics


def test_track_event_stores_the_row(fake_supabase):
    assert analytics.track_event("phone_click", user_id="u1", food_truck_id="T1", event_data={"source": "map"})

    [row] = fake_supabase.rows("analytics_events")
    assert row["event_type"] == "phone_click"
    assert row["user_id"] == "u1"
    assert row["food_truck_id"] == "T1"
    assert row["event_data"] == {"source": "map"}


def test_anonymous_events_store_nulls(fake_supabase):
    analytics.track_event("map_marker_click", user_id="", food_truck_id="T1")

    row = fake_supabase.rows("analytics_events")[0]
    assert row["user_id"] is None
    assert row["event_data"] is None


def test_named_trackers_use_their_event_types(fake_supabase):
    analytics.track_truck_view(None, "T1")
    analytics.track_map_click("u1", "T1")
    analytics.track_phone_click("u1", "T2")
    analytics.track_direction_click(None, "T3")

    assert [row["event_type"] for row in fake_supabase.rows("analytics_events")] == [
        "truck_profile_view",
        "map_marker_click",
        "phone_click",
        "direction_click",
    ]


def test_storage_failures_are_swallowed(fake_supabase):
    fake_supabase.fail("analytics_events", "insert", RuntimeError("permission denied"))

    assert analytics.track_truck_view("u1", "T1") is False
    assert fake_supabase.rows("analytics_events") == []


def test_without_database_nothing_is_recorded(no_supabase):
    assert analytics.track_direction_click("u1", "T1") is False
