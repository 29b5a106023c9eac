from dataclasses import dataclass, fields


@dataclass(frozen=True)
class GameSettings:
    """Engine tunables, lifted out of the Flask config so the engine never needs an app."""
    max_players: int = 4
    min_players: int = 2
    default_mode: str = 'crazy-eights'
    hand_size: int = 7
    first_flip_animation_ms: int = 1500
    wild_animation_ms: int = 3300
    winner_animation_ms: int = 8000
    animation_grace_ms: int = 2000
    answer_duration_sec: int = 30
    voting_duration_sec: int = 30
    results_duration_sec: int = 6
    room_idle_timeout_sec: int = 7200
    room_sweep_interval_sec: int = 3600

    @classmethod
    def from_config(cls, config) -> 'GameSettings':
        values = {}
        for f in fields(cls):
            key = f.name.upper()
            if key == 'DEFAULT_MODE':
                key = 'DEFAULT_GAME_MODE'
            if key in config:
                values[f.name] = config[key]
        return cls(**values)
