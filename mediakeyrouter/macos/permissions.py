# mediakeyrouter/macos/permissions.py

import logging

from ApplicationServices import AXIsProcessTrustedWithOptions, kAXTrustedCheckOptionPrompt


def check_accessibility(prompt: bool = True) -> bool:
    """Returns True when this process may install an event tap. Optionally shows the system prompt."""
    trusted = bool(AXIsProcessTrustedWithOptions({kAXTrustedCheckOptionPrompt: prompt}))
    if not trusted:
        logging.warning(
            "Accessibility permission is missing. Grant it to your terminal or Python in "
            "System Settings → Privacy & Security → Accessibility, then restart."
        )
    return trusted
