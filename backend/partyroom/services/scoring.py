from typing import Dict, List, Optional

CORRECT_VOTE_POINTS = 150
EXACT_ANSWER_POINTS = 100


def correct_vote_for(correct_answer, player_answer) -> Optional[str]:
    """'over' if the true answer is above the guess, 'under' if below, 'exact' on a tie."""
    if player_answer is None:
        return None
    if correct_answer > player_answer:
        return 'over'
    if correct_answer < player_answer:
        return 'under'
    return 'exact'


def score_current_round(mode) -> Dict:
    """Apply scoring for the current over/under round.

    +150 to each voter who called over/under correctly; on an exact answer
    every voter gets +100. The answerer and non-voters get nothing. The
    round summary is appended to the mode's round_results and returned.
    """
    correct_answer = mode.question['answer']
    player_answer = mode.answer
    correct_vote = correct_vote_for(correct_answer, player_answer)

    winners: List[str] = []
    votes: List[Dict] = []
    for player in mode.roster.all():
        mode.scores.setdefault(player.id, 0)
        player.score = mode.scores[player.id]
        if player.id == mode.answerer_id:
            votes.append({'playerId': player.id, 'playerName': player.name, 'vote': 'answerer',
                          'correct': False, 'pointsEarned': 0})
            continue
        vote = mode.votes.get(player.id)
        points = 0
        if vote is not None and correct_vote == 'exact':
            points = EXACT_ANSWER_POINTS
        elif vote is not None and vote == correct_vote:
            points = CORRECT_VOTE_POINTS
            winners.append(player.name)
        if points:
            mode.scores[player.id] += points
        player.score = mode.scores[player.id]
        votes.append({
            'playerId': player.id,
            'playerName': player.name,
            'vote': vote or 'no vote',
            'correct': points > 0,
            'pointsEarned': points,
        })

    answerer = mode.roster.get(mode.answerer_id)
    results = {
        'round': mode.round_number,
        'question': mode.question['question'],
        'answererName': answerer.name if answerer else None,
        'playerAnswer': player_answer,
        'correctAnswer': correct_answer,
        'correctVote': correct_vote,
        'winners': winners,
        'votes': votes,
    }
    mode.round_results.append(results)
    return results


def final_standings(mode) -> List[Dict]:
    standings = [
        {
            'playerId': p.id,
            'playerName': p.name,
            'playerColor': p.color,
            'totalScore': mode.scores.get(p.id, 0),
        }
        for p in mode.roster.all()
    ]
    standings.sort(key=lambda s: s['totalScore'], reverse=True)
    return standings
