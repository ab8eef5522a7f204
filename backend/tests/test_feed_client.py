"""Tests for GTFS-RT decoding and the feed client."""

import asyncio

import httpx
import pytest
from google.transit import gtfs_realtime_pb2

from subway_motion.core.feed_client import (
    FeedClient,
    FeedError,
    StopInfo,
    StopLookup,
    VehicleFix,
    VehicleStatus,
    decode_fixes,
)

STOPS = StopLookup({
    "A27N": StopInfo(name="42 St-Port Authority", lat=40.757308, lon=-73.989735),
    "127S": StopInfo(name="Times Sq-42 St", lat=40.75529, lon=-73.987495),
})


def make_feed() -> bytes:
    feed = gtfs_realtime_pb2.FeedMessage()
    feed.header.gtfs_realtime_version = "2.0"

    e = feed.entity.add()
    e.id = "000001A"
    e.vehicle.trip.route_id = "A"
    e.vehicle.stop_id = "A27N"
    e.vehicle.current_status = gtfs_realtime_pb2.VehiclePosition.STOPPED_AT

    e = feed.entity.add()
    e.id = "000002"
    e.vehicle.trip.route_id = "1"
    e.vehicle.stop_id = "127S"
    e.vehicle.current_status = gtfs_realtime_pb2.VehiclePosition.IN_TRANSIT_TO

    # no stop id
    e = feed.entity.add()
    e.id = "000003"
    e.vehicle.trip.route_id = "L"

    # unknown stop
    e = feed.entity.add()
    e.id = "000004"
    e.vehicle.trip.route_id = "G"
    e.vehicle.stop_id = "G99N"

    # trip update only
    e = feed.entity.add()
    e.id = "000005"
    e.trip_update.trip.route_id = "A"

    return feed.SerializeToString()


def test_decode_fixes():
    fixes = decode_fixes(make_feed(), STOPS)

    assert [f.id for f in fixes] == ["000001A", "000002"]
    first = fixes[0]
    assert first.route == "A"
    assert first.lat == 40.757308
    assert first.lon == -73.989735
    assert first.status is VehicleStatus.STOPPED_AT
    assert first.stop_name == "42 St-Port Authority"
    assert fixes[1].status is VehicleStatus.IN_TRANSIT_TO


def test_decode_garbage_raises():
    with pytest.raises(FeedError):
        decode_fixes(b"\xff\xff\xff\xff", STOPS)


def test_vehicle_fix_normalises_fields():
    fix = VehicleFix(id="x", route=" 6x ", lat=40.7, lon=-74.0, status=1)
    assert fix.route == "6X"
    assert fix.status is VehicleStatus.STOPPED_AT
    assert fix.position == (-74.0, 40.7)
    assert VehicleFix(id="y", route="A", lat=0, lon=0, status="bogus").status is VehicleStatus.IN_TRANSIT_TO


def test_stop_lookup_from_csv(tmp_path):
    path = tmp_path / "stops.txt"
    path.write_text(
        "stop_id,stop_name,stop_lat,stop_lon,location_type,parent_station\n"
        "101,Van Cortlandt Park-242 St,40.889248,-73.898583,1,\n"
        "101N,Van Cortlandt Park-242 St,40.889248,-73.898583,,101\n"
        "BAD,Broken,,\n",
        encoding="utf-8",
    )

    stops = StopLookup.from_csv(path)

    assert len(stops) == 2
    assert stops.get("101N").lat == 40.889248
    assert stops.get("BAD") is None


def test_stop_lookup_missing_file(tmp_path):
    assert len(StopLookup.from_csv(tmp_path / "missing.txt")) == 0


@pytest.mark.asyncio
async def test_fetch_fixes_merges_feeds():
    payload = make_feed()
    client = FeedClient(STOPS, feed_urls=["https://feeds.test/a", "https://feeds.test/b"])
    await client.close()
    client._client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, content=payload)),
    )

    fixes = await client.fetch_fixes()
    await client.close()

    assert len(fixes) == 4


@pytest.mark.asyncio
async def test_fetch_fixes_fails_when_any_feed_fails():
    def handler(request):
        if request.url.path == "/b":
            return httpx.Response(503)
        return httpx.Response(200, content=make_feed())

    client = FeedClient(STOPS, feed_urls=["https://feeds.test/a", "https://feeds.test/b"])
    await client.close()
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    with pytest.raises(FeedError):
        await client.fetch_fixes()
    await client.close()


@pytest.mark.asyncio
async def test_fetch_fixes_cancels_pending_feeds_on_failure():
    cancelled = asyncio.Event()

    async def handler(request):
        if request.url.path == "/b":
            return httpx.Response(503)
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return httpx.Response(200, content=make_feed())

    client = FeedClient(STOPS, feed_urls=["https://feeds.test/a", "https://feeds.test/b"])
    await client.close()
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    with pytest.raises(FeedError):
        await client.fetch_fixes()
    # the slow feed is abandoned rather than left running
    await asyncio.wait_for(cancelled.wait(), timeout=1)
    await client.close()
