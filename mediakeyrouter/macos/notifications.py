# mediakeyrouter/macos/notifications.py

import logging
from typing import Any, Callable

from Foundation import NSDistributedNotificationCenter, NSObject
import objc


def post_notification(name: str, user_info: dict[str, Any]) -> None:
    center = NSDistributedNotificationCenter.defaultCenter()
    center.postNotificationName_object_userInfo_deliverImmediately_(name, None, user_info, True)
    logging.debug(f"Notifications: posted {name} {user_info}")


class NotificationObserver(NSObject):
    """Calls a Python callback with the userInfo of every matching distributed notification."""

    def initWithName_callback_(self, name, callback):
        self = objc.super(NotificationObserver, self).init()
        if self is None:
            return None
        self.notification_name = name
        self.callback = callback
        return self

    def start(self):
        NSDistributedNotificationCenter.defaultCenter().addObserver_selector_name_object_(
            self, "handleNotification:", self.notification_name, None
        )
        logging.info(f"Notifications: observing {self.notification_name}")

    def stop(self):
        NSDistributedNotificationCenter.defaultCenter().removeObserver_(self)

    def handleNotification_(self, notification):
        info = notification.userInfo()
        try:
            self.callback(dict(info) if info is not None else {})
        except Exception as e:
            logging.error(f"Notifications: handler for {self.notification_name} failed: {e}", exc_info=True)


def observe(name: str, callback: Callable[[dict[str, Any]], None]) -> NotificationObserver:
    observer = NotificationObserver.alloc().initWithName_callback_(name, callback)
    observer.start()
    return observer
