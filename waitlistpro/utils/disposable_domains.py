"""
Static block-lists used by signup fraud checks.

DISPOSABLE_DOMAINS: throwaway-mailbox providers. Matched against the lower-cased
domain exactly (no subdomain walking).
SUSPICIOUS_PATTERNS: heuristics applied to the lower-cased local part.
"""
import re

DISPOSABLE_DOMAINS = frozenset({
    # Popular disposable services
    "10minutemail.com", "10minutemail.net", "10minutemail.org",
    "guerrillamail.com", "guerrillamail.net", "guerrillamail.org",
    "guerrillamailblock.com", "grr.la", "sharklasers.com", "pokemail.net", "spam4.me",
    "mailinator.com", "mailinator.net", "mailinator2.com", "mailinater.com",
    "binkmail.com", "bobmail.info", "chammy.info", "devnullmail.com",
    "letthemeatspam.com", "spamhereplease.com", "tradermail.info",
    "temp-mail.org", "temp-mail.io", "tempmail.com", "tempmail.net", "tempmail.it",
    "tmpmail.org", "tmpmail.net", "tempail.com", "tempemail.com", "tempemail.net",
    "tempinbox.com", "tempinbox.co.uk", "temporaryemail.net", "temporaryinbox.com",
    "throwaway.email", "throwawaymail.com",
    "getnada.com", "getairmail.com", "fakeinbox.com",
    "trashmail.com", "trashmail.net", "mytrashmail.com", "mailmetrash.com",
    "maildrop.cc", "yopmail.com", "yopmail.fr", "yopmail.net",
    "dispostable.com", "disposeamail.com", "spamgourmet.com",
    "mohmal.com", "mytemp.email", "burnermail.io", "emailondeck.com",
    "mintemail.com", "mailcatch.com", "mailexpire.com", "mailforspam.com",
    "spambox.us", "spamex.com", "spamfree24.com", "spamfree24.de", "spamfree24.org",
    "jetable.org", "anonbox.net", "anonymbox.com", "deadaddress.com",
    "despam.it", "dodgeit.com", "e4ward.com", "emltmp.com", "filzmail.com",
    "incognitomail.com", "kasmail.com", "no-spam.ws", "pookmail.com",
    "selfdestructingmail.com", "spamavert.com", "spamspot.com",
    "wegwerfmail.de", "wegwerfmail.net", "wegwerfmail.org",
    "willselfdestruct.com", "33mail.com", "0815.ru", "0clickemail.com",
    "1mail.ml", "20email.eu", "discard.email", "fakemail.net",
    "harakirimail.com", "inboxkitten.com", "mailnesia.com", "mailpoof.com",
    "moakt.com", "spamdecoy.net", "tempr.email", "trbvm.com", "zetmail.com",
})

SUSPICIOUS_PATTERNS = (
    re.compile(r"^\d+$"),                          # all digits
    re.compile(r"^(asdf|qwer|zxcv|hjkl|aaaa|xxxx)"),  # keyboard mash
    re.compile(r"^test\d*$"),                      # test, test1, test123
    re.compile(r"^[a-z]{1,2}\d{5,}$"),             # a12345678
    re.compile(r"(.)\1{4,}"),                      # five or more repeated chars
    re.compile(r"^[bcdfghjklmnpqrstvwxz]{8,}$"),   # long consonant runs
    re.compile(r"^(fake|spam|noreply|no-reply|temp|throwaway)\b"),
)
