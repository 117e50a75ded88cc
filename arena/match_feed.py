import logging
from typing import List

from .errors import NotFound, Forbidden, ValidationError
from .models import Match, ChatMessage, MatchReplay, User
from .payloads import require, parse_choice

logger = logging.getLogger(__name__)

CHAT_TYPES = ('user', 'admin', 'system')


class MatchFeed:
    """Append-only match chat and replay metadata."""

    def __init__(self, session):
        self.session = session

    def _get_match(self, match_id: str) -> Match:
        match = self.session.get(Match, match_id)
        if not match:
            raise NotFound("Match not found")
        return match

    # ==================== Chat ====================

    def list_chat_messages(self, match_id: str) -> List[ChatMessage]:
        self._get_match(match_id)
        return self.session.query(ChatMessage).filter_by(
            match_id=match_id
        ).order_by(ChatMessage.created_at, ChatMessage.id).all()

    def post_chat_message(self, match_id: str, user: User, message: str,
                          message_type: str = 'user') -> ChatMessage:
        """
        Append a message to a match's chat.

        Only admins may post 'admin' messages; 'system' messages are never
        accepted from callers.
        """
        self._get_match(match_id)

        if not message or not str(message).strip():
            raise ValidationError("Message cannot be empty")
        message_type = parse_choice(message_type or 'user', 'type', CHAT_TYPES)
        if message_type == 'system':
            raise Forbidden("System messages cannot be posted")
        if message_type == 'admin' and not user.is_admin:
            raise Forbidden("Only admins can post admin messages")

        chat_message = ChatMessage(
            match_id=match_id,
            user_id=user.id,
            message=str(message).strip(),
            type=message_type
        )
        self.session.add(chat_message)
        self.session.commit()
        return chat_message

    # ==================== Replays ====================

    def list_replays(self) -> List[MatchReplay]:
        return self.session.query(MatchReplay).order_by(MatchReplay.created_at.desc()).all()

    def get_replay(self, replay_id: str) -> MatchReplay:
        replay = self.session.get(MatchReplay, replay_id)
        if not replay:
            raise NotFound("Replay not found")
        return replay

    def create_replay(self, data: dict) -> MatchReplay:
        require(data, 'match_id', 'title', 'video_url')
        self._get_match(data['match_id'])

        replay = MatchReplay(
            match_id=data['match_id'],
            title=data['title'],
            description=data.get('description'),
            video_url=data['video_url'],
            thumbnail_url=data.get('thumbnail_url'),
            duration=data.get('duration')
        )
        self.session.add(replay)
        self.session.commit()

        logger.info(f"Added replay {replay.id} for match {replay.match_id}")
        return replay
