from __future__ import annotations

import pytest

from datetime import datetime
from rangebook.db.booker import Booker
from rangebook.modules import errors


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from conftest import RecordingNotifier
    from rangebook.context.permissions import Actor
    from rangebook.db.models import Station


def test_add_stations(booker: Booker) -> None:
    registry = booker.stations

    first = registry.add_station('Lane 1')
    second = registry.add_station('Lane 2')

    assert first.order == 1
    assert second.order == 2
    assert first.active
    assert first.facility == booker.facility

    assert [s.name for s in registry.all_stations()] == ['Lane 1', 'Lane 2']
    assert [s.name for s in registry.active_stations()] == [
        'Lane 1', 'Lane 2'
    ]
    assert registry.station_by_id(first.id).name == 'Lane 1'


def test_unique_station_names(booker: Booker) -> None:
    booker.stations.add_station('Lane 1')

    with pytest.raises(errors.DuplicateName) as e:
        booker.stations.add_station('Lane 1')

    assert e.value.kind == 'already_exists'
    assert len(booker.stations.all_stations()) == 1

    # other facilities may use the same names
    other = Booker(booker.context, 'other', 'Europe/Zurich')
    try:
        assert other.stations.add_station('Lane 1').name == 'Lane 1'
    finally:
        other.extinguish_managed_records()
        other.commit()


def test_rename_station(booker: Booker, stations: list[Station]) -> None:
    station = booker.stations.rename_station(stations[0].id, 'Pistol 1')
    assert station.name == 'Pistol 1'

    # renaming to the same name is a no-op
    booker.stations.rename_station(stations[0].id, 'Pistol 1')

    with pytest.raises(errors.DuplicateName):
        booker.stations.rename_station(stations[1].id, 'Pistol 1')

    with pytest.raises(errors.StationNotFound):
        booker.stations.rename_station(999999, 'Rifle 1')


def test_deactivate_station(
    booker: Booker,
    notifier: RecordingNotifier,
    stations: list[Station],
    alice: Actor,
    bob: Actor
) -> None:

    reservation_id = booker.create_reservation(
        [stations[0].id],
        datetime(2030, 6, 1, 10),
        datetime(2030, 6, 1, 12),
        alice
    ).reservation.id
    booker.create_reservation(
        [stations[1].id],
        datetime(2030, 6, 1, 10),
        datetime(2030, 6, 1, 12),
        bob
    )

    station = booker.stations.deactivate_station(stations[0].id)
    assert not station.active
    assert notifier.sent == []

    assert [s.name for s in booker.stations.active_stations()] == [
        'Lane 2', 'Lane 3'
    ]
    assert len(booker.stations.all_stations()) == 3

    # existing reservations keep the station
    reservation = booker.reservation_by_id(reservation_id)
    assert [s.name for s in reservation.stations] == ['Lane 1']

    with pytest.raises(errors.InvalidStation):
        booker.stations.active_stations_by_ids([stations[0].id])


def test_deactivate_station_with_notification(
    booker: Booker,
    notifier: RecordingNotifier,
    stations: list[Station],
    alice: Actor,
    bob: Actor
) -> None:

    booker.create_reservation(
        [stations[0].id],
        datetime(2030, 6, 1, 10),
        datetime(2030, 6, 1, 12),
        alice
    )
    booker.create_reservation(
        [stations[1].id],
        datetime(2030, 6, 1, 10),
        datetime(2030, 6, 1, 12),
        bob
    )

    booker.stations.deactivate_station(stations[0].id, notify=True)

    assert notifier.titles('alice') == ['Station unavailable']
    assert notifier.titles('bob') == []
    assert '"Lane 1"' in notifier.to('alice')[0].message


def test_reorder_stations(booker: Booker, stations: list[Station]) -> None:
    ids = [s.id for s in stations]

    reordered = booker.stations.reorder_stations(
        [ids[2], 999999, ids[0], ids[1]]
    )

    assert [s.name for s in reordered] == ['Lane 3', 'Lane 1', 'Lane 2']
    assert [s.name for s in booker.stations.active_stations()] == [
        'Lane 3', 'Lane 1', 'Lane 2'
    ]


def test_active_stations_by_ids(
    booker: Booker,
    stations: list[Station]
) -> None:

    ids = [s.id for s in stations]

    assert booker.stations.active_stations_by_ids([]) == []
    assert [
        s.name for s in booker.stations.active_stations_by_ids(
            [ids[1], ids[0], ids[1]]
        )
    ] == ['Lane 1', 'Lane 2']

    with pytest.raises(errors.InvalidStation):
        booker.stations.active_stations_by_ids([ids[0], 999999])
