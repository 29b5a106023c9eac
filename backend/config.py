import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Room limits
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '4'))
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    DEFAULT_GAME_MODE = os.environ.get('DEFAULT_GAME_MODE', 'crazy-eights')
    # Crazy eights
    HAND_SIZE = int(os.environ.get('HAND_SIZE', '7'))
    # Display animation locks (milliseconds). 0 disables a lock.
    FIRST_FLIP_ANIMATION_MS = int(os.environ.get('FIRST_FLIP_ANIMATION_MS', '1500'))
    WILD_ANIMATION_MS = int(os.environ.get('WILD_ANIMATION_MS', '3300'))
    WINNER_ANIMATION_MS = int(os.environ.get('WINNER_ANIMATION_MS', '8000'))
    # Extra time before a lock is released without the display's signal
    ANIMATION_GRACE_MS = int(os.environ.get('ANIMATION_GRACE_MS', '2000'))
    # Over/under stage timers (seconds)
    ANSWER_DURATION_SEC = int(os.environ.get('ANSWER_DURATION_SEC', '30'))
    VOTING_DURATION_SEC = int(os.environ.get('VOTING_DURATION_SEC', '30'))
    RESULTS_DURATION_SEC = int(os.environ.get('RESULTS_DURATION_SEC', '6'))
    # Idle room cleanup
    ROOM_IDLE_TIMEOUT_SEC = int(os.environ.get('ROOM_IDLE_TIMEOUT_SEC', '7200'))
    ROOM_SWEEP_INTERVAL_SEC = int(os.environ.get('ROOM_SWEEP_INTERVAL_SEC', '3600'))
