# Lifecycle events sent by the host after a short link operation succeeds
LINK_CREATED = 'link_created'
LINK_EDITED = 'link_edited'
LINK_DELETED = 'link_deleted'

LINK_EVENTS = (LINK_CREATED, LINK_EDITED, LINK_DELETED)
