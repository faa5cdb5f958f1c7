import json
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

NAMESPACE = '/ws'

# Framework tags a client may report alongside its score
FRAMEWORKS = ('vue', 'react', 'angular')

# Client -> server
SCORE_SUBMIT = 'SCORE_SUBMIT'
PING = 'PING'
INBOUND_TYPES = (SCORE_SUBMIT, PING)

# Server -> client
LEADERBOARD_UPDATE = 'LEADERBOARD_UPDATE'
PONG = 'PONG'
ERROR = 'ERROR'

Number = Union[int, float]


def generate_player_id() -> str:
    return uuid.uuid4().hex[:9]


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Player:
    """A nickname's best accepted score.

    Records are immutable; a new personal best replaces the whole record,
    including a fresh ``id``.
    """
    nickname: str
    score: Number
    framework: str
    id: str = field(default_factory=generate_player_id)
    timestamp: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'nickname': self.nickname,
            'score': self.score,
            'framework': self.framework,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        return cls(
            id=str(data['id']),
            nickname=data['nickname'],
            score=data['score'],
            framework=data['framework'],
            timestamp=int(data['timestamp']),
        )


def make_frame(msg_type: str, payload: Optional[Dict[str, Any]] = None) -> str:
    """Encode a protocol message as a JSON text frame."""
    message: Dict[str, Any] = {'type': msg_type}
    if payload is not None:
        message['payload'] = payload
    return json.dumps(message)


def leaderboard_frame(players) -> str:
    return make_frame(LEADERBOARD_UPDATE, {'players': [p.to_dict() for p in players]})


def error_frame(message: str) -> str:
    return make_frame(ERROR, {'message': message})


def parse_frame(data: Any) -> Dict[str, Any]:
    """Decode an inbound frame into a message dict.

    Accepts JSON text (or bytes) and already-decoded dicts. Raises
    ValueError when the frame is not a JSON object.
    """
    if isinstance(data, (bytes, bytearray)):
        data = data.decode('utf-8')
    if isinstance(data, str):
        data = json.loads(data)
    if not isinstance(data, dict):
        raise ValueError('frame is not a JSON object')
    return data
