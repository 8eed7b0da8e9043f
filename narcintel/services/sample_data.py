"""
Sample posts and users.

Used to seed a fresh store and to serve the dashboard in demo mode when no
document store is configured.
"""

from typing import Any, Dict, List

SAMPLE_POSTS: List[Dict[str, Any]] = [
    {
        "platform": "Telegram",
        "channel": "@thegoodstuff",
        "text": (
            "🔥 New batch just dropped! Top quality MDMA pills (ecstasy) and pure crystal meth "
            "available now. Discreet shipping worldwide. DM for prices and menu. 💊🚀 "
            "#mdma #crystal #deals"
        ),
        "detected_keywords": ["MDMA", "pills", "crystal meth"],
        "matched_emojis": ["🔥", "💊", "🚀"],
        "riskScore": 95,
        "riskLevel": "High",
    },
    {
        "platform": "Instagram",
        "channel": "partysupplies_uk",
        "text": (
            "Weekend forecast: 100% chance of rolling. Hmu if you need party favours for the "
            "festival. 🍬😉 Special powders ready. #weekendvibes #partytime"
        ),
        "detected_keywords": ["rolling", "party favours", "powders"],
        "matched_emojis": ["🍬"],
        "riskScore": 75,
        "riskLevel": "High",
    },
    {
        "platform": "WhatsApp",
        "channel": "Secret Rave Group",
        "text": "Got some fire molly for this weekend. Hit me up before it's all gone!",
        "detected_keywords": ["molly"],
        "matched_emojis": [],
        "riskScore": 80,
        "riskLevel": "High",
    },
    {
        "platform": "Telegram",
        "channel": "@chemcentral",
        "text": (
            "Testing out some new chemicals. Looking for psychonauts to give feedback. "
            "Message for details. #researchchem"
        ),
        "detected_keywords": ["chemicals", "psychonauts"],
        "matched_emojis": [],
        "riskScore": 65,
        "riskLevel": "Medium",
    },
]

SAMPLE_USERS: List[Dict[str, Any]] = [
    {
        "username": "coke_dealer_nyc",
        "platform": "Telegram",
        "linked_profiles": ["Instagram:nycsnowman", "WhatsApp:coke_dealer_nyc"],
        "risk_level": "Critical",
    },
    {
        "username": "rave_dave23",
        "platform": "Instagram",
        "linked_profiles": [],
        "risk_level": "Medium",
    },
]
