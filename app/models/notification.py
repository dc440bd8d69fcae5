# file: models/notification.py

import re
from dataclasses import dataclass
from typing import Dict, Optional, Union

from pydantic import BaseModel

from app.errors import ValidationError

# FCM topic names: https://firebase.google.com/docs/cloud-messaging/android/topic-messaging
TOPIC_NAME = re.compile(r"^[a-zA-Z0-9\-_.~%]+$")
TRIBE_KEY = "tribeId"
# firebase-admin accepts and strips this prefix on raw topic names.
TOPICS_PATH = "/topics/"


class NotificationRequest(BaseModel):
    title: str
    body: str
    data: Optional[Dict[str, str]] = None
    token: Optional[str] = None
    topicId: Optional[str] = None
    topic: Optional[str] = None


@dataclass(frozen=True)
class TokenTarget:
    token: str


@dataclass(frozen=True)
class TopicTarget:
    topic: str


DeliveryTarget = Union[TokenTarget, TopicTarget]


def _checked_topic(topic: str, source: str) -> str:
    if not TOPIC_NAME.match(topic):
        raise ValidationError(f"Invalid topic derived from {source}: {topic!r}")
    return topic


def _topic_identifier(request: NotificationRequest):
    if request.topicId is not None:
        return request.topicId, "topicId"
    if request.data and TRIBE_KEY in request.data:
        return request.data[TRIBE_KEY], f"data.{TRIBE_KEY}"
    return None, None


def resolve_target(request: NotificationRequest, topic_prefix: str) -> DeliveryTarget:
    """
    Picks the single delivery target for a notification.

    Precedence: explicit `topic`, then `topicId`, then `data.tribeId`, then
    `token`. Whenever a topic can be derived the token is dropped, so the
    provider never receives both.
    """
    if request.topic is not None:
        topic = request.topic.strip()
        if topic.startswith(TOPICS_PATH):
            topic = topic[len(TOPICS_PATH):]
        if not topic:
            raise ValidationError("topic must not be empty")
        return TopicTarget(_checked_topic(topic, "topic"))

    identifier, source = _topic_identifier(request)
    if identifier is not None:
        identifier = identifier.strip()
        if not identifier:
            raise ValidationError(f"{source} must not be empty")
        return TopicTarget(_checked_topic(f"{topic_prefix}{identifier}", source))

    token = (request.token or "").strip()
    if not token:
        raise ValidationError("Either a device token or a topic identifier is required")
    return TokenTarget(token)
