from rangebook.db.models.base import ORMBase
from rangebook.db.models.station import Station
from rangebook.db.models.closure import Closure
from rangebook.db.models.participant import Participant
from rangebook.db.models.station_link import StationLink
from rangebook.db.models.reservation import Reservation


__all__ = (
    'ORMBase',
    'Closure',
    'Participant',
    'Reservation',
    'Station',
    'StationLink',
)
