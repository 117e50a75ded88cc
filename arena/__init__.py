"""
BGMI Arena - tournament organisation API

Responsibilities:
- Tournament registry (CRUD, open -> live -> completed lifecycle)
- Team registration into capacity-bounded tournaments
- Teams, memberships and invitations
- Match lifecycle and per-team results (alive -> eliminated)
- Match chat and replays
- Aggregate views (player/team leaderboards, platform stats)
"""
