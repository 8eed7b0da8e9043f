"""
Persistence actions: saving flagged posts and suspected users, reading the
dashboard, and seeding demo data.

Every action returns a result instead of raising. A missing store is a soft
no-op, not an error.
"""

import hashlib
import re
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from narcintel.config import settings
from narcintel.schemas.action_schemas import ActionResult, DashboardData, DashboardStats
from narcintel.schemas.flow_schemas import AnalysisResult, RiskAssessment, UserProfile
from narcintel.services.document_store import (
    FLAGGED_POSTS,
    SERVER_TIMESTAMP,
    SUSPECTED_USERS,
    DocumentStore,
)
from narcintel.services.sample_data import SAMPLE_POSTS, SAMPLE_USERS
from narcintel.utils.logging_config import StructuredLogger

logger = StructuredLogger(__name__)

NOT_CONFIGURED_MESSAGE = "Document store is not configured, skipping save."
LOW_RISK_MESSAGE = "Low risk, not saving."
FLAGGED_STATUS = "flagged"


def hash_email(email: str) -> str:
    """SHA-256 hex digest; the only form in which an email is persisted."""
    return hashlib.sha256(email.encode("utf-8")).hexdigest()


def save_analysis(
    store: Optional[DocumentStore],
    platform: str,
    channel: Optional[str],
    content: str,
    analysis: AnalysisResult,
    risk: RiskAssessment,
) -> ActionResult:
    """Persist one flagged post unless the risk is Low or the store is absent."""
    if store is None:
        logger.warning(NOT_CONFIGURED_MESSAGE)
        return ActionResult(success=True, message=NOT_CONFIGURED_MESSAGE)

    if risk.is_low:
        logger.info("Low risk, not saving flagged post", platform=platform)
        return ActionResult(success=True, message=LOW_RISK_MESSAGE)

    document = {
        "platform": platform,
        "channel": channel or None,
        "text": content,
        "detected_keywords": list(risk.indicators),
        "matched_emojis": list(analysis.matched_emojis),
        "riskScore": risk.risk_score,
        "riskLevel": risk.risk_level,
        "status": FLAGGED_STATUS,
        "timestamp": SERVER_TIMESTAMP,
        "full_analysis": {
            "analysis": analysis.model_dump(by_alias=True),
            "risk": risk.model_dump(by_alias=True),
        },
    }

    try:
        doc_id = store.add(FLAGGED_POSTS, document)
    except Exception as e:
        logger.error("Error saving flagged post", error=str(e), exc_info=True)
        return ActionResult(success=False, message=f"Failed to save analysis: {e}")

    logger.info("Analysis saved", doc_id=doc_id, risk_level=risk.risk_level)
    return ActionResult(success=True, message="Analysis saved successfully.", doc_id=doc_id)


def _redact_email(value: Any, pattern: re.Pattern, digest: str) -> Any:
    """Replace every occurrence of the address in strings, lists and dicts."""
    if isinstance(value, str):
        return pattern.sub(digest, value)
    if isinstance(value, list):
        return [_redact_email(item, pattern, digest) for item in value]
    if isinstance(value, dict):
        return {key: _redact_email(item, pattern, digest) for key, item in value.items()}
    return value


def save_suspected_user(store: Optional[DocumentStore], profile: UserProfile) -> ActionResult:
    """
    Upsert the profile keyed by username, merging into any earlier record.

    The email is replaced by its SHA-256 digest before anything is written,
    wherever the model repeated it: the summary, the linked profiles and the
    nested copy of the profile.
    """
    if store is None:
        logger.warning(NOT_CONFIGURED_MESSAGE)
        return ActionResult(success=True, message=NOT_CONFIGURED_MESSAGE)

    email_hash = hash_email(profile.email) if profile.email else None

    profile_data = profile.model_dump(by_alias=True)
    profile_data["email"] = email_hash
    linked_profiles = list(profile.linked_profiles)
    summary = profile.summary

    if profile.email:
        pattern = re.compile(re.escape(profile.email), re.IGNORECASE)
        profile_data = _redact_email(profile_data, pattern, email_hash)
        linked_profiles = _redact_email(linked_profiles, pattern, email_hash)
        summary = _redact_email(summary, pattern, email_hash)

    document = {
        "username": profile.username,
        "platform": profile.platform,
        "linked_profiles": linked_profiles,
        "risk_level": profile.risk_level,
        "summary": summary,
        "email": email_hash,
        "email_hash": email_hash,
        "last_seen": SERVER_TIMESTAMP,
        "full_analysis": profile_data,
    }

    try:
        store.set(SUSPECTED_USERS, profile.username, document, merge=True)
    except Exception as e:
        logger.error("Error saving suspected user", error=str(e), exc_info=True)
        return ActionResult(success=False, message=f"Failed to save user profile: {e}")

    logger.info("Suspected user saved", doc_id=profile.username, risk_level=profile.risk_level)
    return ActionResult(
        success=True,
        message=f"User profile for {profile.username} has been saved.",
        doc_id=profile.username,
    )


def compute_dashboard_stats(
    posts: Iterable[Dict[str, Any]],
    top_keywords: Optional[int] = None,
) -> DashboardStats:
    """
    Frequency tables over flagged posts.

    Keywords keep the top N by count; equal counts stay in first-seen order.
    """
    top_keywords = top_keywords if top_keywords is not None else settings.dashboard_top_keywords

    risk_levels: Counter = Counter()
    platforms: Counter = Counter()
    keywords: Counter = Counter()

    for post in posts:
        if post.get("riskLevel"):
            risk_levels[post["riskLevel"]] += 1
        if post.get("platform"):
            platforms[post["platform"]] += 1
        detected = post.get("detected_keywords")
        if isinstance(detected, list):
            for keyword in detected:
                keywords[keyword] += 1

    return DashboardStats(
        risk_level_counts=dict(risk_levels),
        platform_counts=dict(platforms),
        keyword_counts=dict(keywords.most_common(top_keywords)),
    )


def _without_payload(document: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in document.items() if key != "full_analysis"}


def get_sample_dashboard_data() -> DashboardData:
    """Dashboard built from the sample set, for running without a store."""
    now = datetime.now(timezone.utc).isoformat()

    posts = [
        {"id": f"sample-post-{i}", **post, "status": FLAGGED_STATUS, "timestamp": now}
        for i, post in enumerate(SAMPLE_POSTS)
    ]
    users = [
        {"id": f"sample-user-{i}", **user, "last_seen": now}
        for i, user in enumerate(SAMPLE_USERS)
    ]

    return DashboardData(
        flagged_posts=posts,
        suspected_users=users,
        stats=compute_dashboard_stats(posts),
        demo=True,
    )


def get_dashboard_data(
    store: Optional[DocumentStore],
    recent_limit: Optional[int] = None,
    top_keywords: Optional[int] = None,
) -> DashboardData:
    """Recent flagged posts and users plus stats over every flagged post."""
    if store is None:
        logger.info("Document store not configured, serving sample dashboard")
        return get_sample_dashboard_data()

    recent_limit = recent_limit if recent_limit is not None else settings.dashboard_recent_limit

    try:
        recent_posts = store.list(FLAGGED_POSTS, order_by="timestamp", limit=recent_limit)
        recent_users = store.list(SUSPECTED_USERS, order_by="last_seen", limit=recent_limit)
        all_posts = store.list(FLAGGED_POSTS)
    except Exception as e:
        logger.error("Error fetching dashboard data", error=str(e), exc_info=True)
        return DashboardData(message=f"Could not fetch dashboard data: {e}")

    return DashboardData(
        flagged_posts=[_without_payload(post) for post in recent_posts],
        suspected_users=[_without_payload(user) for user in recent_users],
        stats=compute_dashboard_stats(all_posts, top_keywords),
    )


def seed_database(store: Optional[DocumentStore]) -> ActionResult:
    """
    Batch-write the sample posts and users.

    Sample users that already have a document are left alone, so seeding
    never overwrites what an investigation stored.
    """
    if store is None:
        logger.warning("Document store is not configured, nothing to seed.")
        return ActionResult(success=True, message="Document store is not configured, nothing to seed.")

    try:
        new_users = [user for user in SAMPLE_USERS if store.get(SUSPECTED_USERS, user["username"]) is None]
        with store.batch() as batch:
            for post in SAMPLE_POSTS:
                batch.add(FLAGGED_POSTS, {**post, "status": FLAGGED_STATUS, "timestamp": SERVER_TIMESTAMP})
            for user in new_users:
                batch.set(
                    SUSPECTED_USERS,
                    user["username"],
                    {**user, "email": None, "email_hash": None, "last_seen": SERVER_TIMESTAMP},
                )
    except Exception as e:
        logger.error("Error seeding database", error=str(e), exc_info=True)
        return ActionResult(success=False, message=f"Failed to seed database: {e}")

    message = f"Seeded {len(SAMPLE_POSTS)} posts and {len(new_users)} users."
    logger.info(message)
    return ActionResult(success=True, message=message)
