"""
Per-recipient views of room state.

The public view is what the shared display (and anyone else) may see; a
private view adds exactly one player's own information on top of it.
"""

from typing import Any, Dict


def project_public(room) -> Dict[str, Any]:
    """Room state without any hand contents."""
    view = {
        'roomCode': room.code,
        'mode': room.mode.name if room.mode else room.mode_name,
        'phase': room.phase,
        'isAnimating': room.is_animating,
        'animationDeadline': room.animation_deadline,
        'players': [
            {
                'id': p.id,
                'name': p.name,
                'color': p.color,
                'cardCount': p.card_count,
                'score': p.score,
                'connected': p.connected,
                'isFirstPlayer': p.is_first_player,
            }
            for p in room.roster.all()
        ],
    }
    if room.mode is not None:
        view.update(room.mode.public_view())
    return view


def project_private(room, player_id: str) -> Dict[str, Any]:
    """The public view plus the viewer's own hand and prompts."""
    view = project_public(room)
    player = room.roster.get(player_id)
    view['playerId'] = player_id
    view['playerName'] = player.name if player else None
    view['playerColor'] = player.color if player else None
    view['isFirstPlayer'] = bool(player and player.is_first_player)
    if room.mode is not None:
        view.update(room.mode.private_view(player_id))
    else:
        view['myHand'] = []
    return view


def room_summary(room) -> Dict[str, Any]:
    """Short listing entry for a room."""
    return {
        'code': room.code,
        'mode': room.mode.name if room.mode else room.mode_name,
        'phase': room.phase,
        'playerCount': len(room.roster),
        'maxPlayers': room.roster.max_players,
        'createdAt': room.created_at,
        'lastActivity': room.last_activity,
    }
