from supabase import Client
from huddle.core.errors import UpstreamFailure
from huddle.modules.push.schemas import SubscribeRequest, SubscriptionResponse
from typing import List
import logging

logger = logging.getLogger(__name__)


class PushSubscriptionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def subscribe(self, user_id: str, data: SubscribeRequest) -> SubscriptionResponse:
        """Store the browser subscription; an existing endpoint is re-bound to this user"""
        try:
            result = self.supabase.table("push_subscriptions").upsert({
                "user_id": user_id,
                "endpoint": data.endpoint,
                "p256dh": data.keys.p256dh,
                "auth": data.keys.auth
            }, on_conflict="endpoint").execute()
            if not result.data:
                raise UpstreamFailure("Failed to save push subscription")
        except UpstreamFailure:
            raise
        except Exception as e:
            logger.error(f"Error saving push subscription: {e}")
            raise UpstreamFailure("Failed to save push subscription")

        logger.info(f"Push subscription saved for user {user_id}")
        return SubscriptionResponse(**result.data[0])

    def unsubscribe(self, user_id: str, endpoint: str) -> None:
        try:
            self.supabase.table("push_subscriptions")\
                .delete()\
                .eq("user_id", user_id)\
                .eq("endpoint", endpoint)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting push subscription: {e}")
            raise UpstreamFailure("Failed to delete push subscription")
        logger.info(f"Push subscription removed for user {user_id}")

    def list_subscriptions(self, user_id: str) -> List[SubscriptionResponse]:
        try:
            result = self.supabase.table("push_subscriptions")\
                .select("id, endpoint, created_at")\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error listing push subscriptions: {e}")
            raise UpstreamFailure("Failed to load push subscriptions")
        return [SubscriptionResponse(**row) for row in result.data or []]
