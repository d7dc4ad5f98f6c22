"""
SOAP envelopes for the Windows Update client web service.

The service checks the namespaces, the `Action` and `To` headers and the
ticket token block, so the templates are kept literal.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional
from xml.sax.saxutils import escape

SOAP_NS = "http://www.w3.org/2003/05/soap-envelope"
ADDRESSING_NS = "http://www.w3.org/2005/08/addressing"
WSSE_NS = "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-secext-1.0.xsd"
WSU_NS = "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-utility-1.0.xsd"
WU_AUTH_NS = "http://schemas.microsoft.com/msus/2014/10/WindowsUpdateAuthorization"
CLIENT_WEB_SERVICE_NS = "http://www.microsoft.com/SoftwareDistribution/Server/ClientWebService"

ACTION_GET_COOKIE = f"{CLIENT_WEB_SERVICE_NS}/GetCookie"
ACTION_SYNC_UPDATES = f"{CLIENT_WEB_SERVICE_NS}/SyncUpdates"
ACTION_GET_EXTENDED_UPDATE_INFO2 = f"{CLIENT_WEB_SERVICE_NS}/GetExtendedUpdateInfo2"

SYNC_MESSAGE_ID = "urn:uuid:175df68c-4b91-41ee-b70b-f2208c65438e"
TIMESTAMP_WINDOW = timedelta(minutes=5)

# Baseline the service expects a desktop client to report as already present.
# It scopes the SyncUpdates response and is not derived from the local machine.
INSTALLED_NON_LEAF_UPDATE_IDS = (
    1, 2, 3, 11, 19, 544, 549, 2359974, 2359977, 5169044, 8788830,
    23110993, 23110994, 54341900, 54343656, 59830006, 59830007, 59830008,
    60484010, 62450018, 62450019, 62450020, 66027979, 66053150, 97657898,
    98822896, 98959022, 98959023, 98959024, 98959025, 98959026, 104433538,
    104900364, 105489019, 117765322, 129905029, 130040031, 132387090,
    132393049, 133399034, 138537048, 140377312, 143747671, 158941041,
    158941042, 158941043, 158941044, 159123858, 159130928, 164836897,
    164847386, 164848327, 164852241, 164852246, 164852252, 164852253,
)  # fmt: skip

OTHER_CACHED_UPDATE_IDS = (
    10, 17, 2359977, 5143990, 5169043, 5169047, 8806526, 9125350, 9154769,
    10809856, 23110995, 23110996, 23110999, 23111000, 23111001, 23111002,
    23111003, 23111004, 24513870, 28880263,
)  # fmt: skip

SYNC_DEVICE_ATTRIBUTES = (
    "BranchReadinessLevel=CB;CurrentBranch=rs_prerelease;FlightRing=Retail;"
    "FlightingBranchName=external;IsFlightingEnabled=1;InstallLanguage=en-US;"
    "OSUILocale=en-US;InstallationType=Client;DeviceFamily=Windows.Desktop;"
)
SYNC_CALLER_ATTRIBUTES = "Interactive=1;IsSeeker=0;"
EXTENDED_INFO_DEVICE_ATTRIBUTES = "FlightRing=Retail;"


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a trailing `Z`."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _int_list(ids: Iterable[int]) -> str:
    return "\n".join(f"                <int>{i}</int>" for i in ids)


def _empty_ticket_security() -> str:
    return f"""<Security mustUnderstand="1" xmlns="{WSSE_NS}">
        <WindowsUpdateTicketsToken xmlns="{WU_AUTH_NS}" u:id="ClientMSA">
        </WindowsUpdateTicketsToken>
    </Security>"""


def get_cookie_envelope(endpoint: str) -> str:
    return f"""<Envelope xmlns="{SOAP_NS}" xmlns:a="{ADDRESSING_NS}" xmlns:u="{WSU_NS}">
<Header>
    <a:Action mustUnderstand="1">{ACTION_GET_COOKIE}</a:Action>
    <a:To mustUnderstand="1">{escape(endpoint)}</a:To>
    {_empty_ticket_security()}
</Header>
<Body></Body>
</Envelope>"""


def sync_updates_envelope(
    endpoint: str,
    encrypted_cookie: str,
    cookie_expiration: str,
    category_id: str,
    now: Optional[datetime] = None,
) -> str:
    """
    Builds the SyncUpdates request for one app category.

    Args:
        endpoint: Value of the `To` header.
        encrypted_cookie: Cookie returned by GetCookie, embedded verbatim.
        cookie_expiration: Expiration sent alongside the cookie.
        category_id: `WuCategoryId` of the product.
        now: Start of the timestamp window, defaults to the current time.
    """
    created = now or datetime.now(timezone.utc)
    expires = created + TIMESTAMP_WINDOW
    return f"""<s:Envelope xmlns:a="{ADDRESSING_NS}" xmlns:s="{SOAP_NS}">
<s:Header>
    <a:Action s:mustUnderstand="1">{ACTION_SYNC_UPDATES}</a:Action>
    <a:MessageID>{SYNC_MESSAGE_ID}</a:MessageID>
    <a:To s:mustUnderstand="1">{escape(endpoint)}</a:To>
    <o:Security s:mustUnderstand="1" xmlns:o="{WSSE_NS}">
        <Timestamp xmlns="{WSU_NS}">
            <Created>{format_timestamp(created)}</Created>
            <Expires>{format_timestamp(expires)}</Expires>
        </Timestamp>
        <wuws:WindowsUpdateTicketsToken wsu:id="ClientMSA" xmlns:wsu="{WSU_NS}" xmlns:wuws="{WU_AUTH_NS}">
            <TicketType Name="MSA" Version="1.0" Policy="MBI_SSL">
                Retail
            </TicketType>
        </wuws:WindowsUpdateTicketsToken>
    </o:Security>
</s:Header>
<s:Body>
    <SyncUpdates xmlns="{CLIENT_WEB_SERVICE_NS}">
        <cookie>
            <Expiration>{escape(cookie_expiration)}</Expiration>
            <EncryptedData>{escape(encrypted_cookie)}</EncryptedData>
        </cookie>
        <parameters>
            <ExpressQuery>false</ExpressQuery>
            <InstalledNonLeafUpdateIDs>
{_int_list(INSTALLED_NON_LEAF_UPDATE_IDS)}
            </InstalledNonLeafUpdateIDs>
            <OtherCachedUpdateIDs>
{_int_list(OTHER_CACHED_UPDATE_IDS)}
            </OtherCachedUpdateIDs>
            <SkipSoftwareSync>false</SkipSoftwareSync>
            <NeedTwoGroupOutOfScopeUpdates>true</NeedTwoGroupOutOfScopeUpdates>
            <FilterAppCategoryIds>
                <CategoryIdentifier>
                    <Id>{escape(category_id)}</Id>
                </CategoryIdentifier>
            </FilterAppCategoryIds>
            <TreatAppCategoryIdsAsInstalled>true</TreatAppCategoryIdsAsInstalled>
            <AlsoPerformRegularSync>false</AlsoPerformRegularSync>
            <ComputerSpec />
            <ExtendedUpdateInfoParameters>
                <XmlUpdateFragmentTypes>
                    <XmlUpdateFragmentType>Extended</XmlUpdateFragmentType>
                </XmlUpdateFragmentTypes>
                <Locales>
                    <string>en-US</string>
                    <string>en</string>
                </Locales>
            </ExtendedUpdateInfoParameters>
            <ClientPreferredLanguages>
                <string>en-US</string>
            </ClientPreferredLanguages>
            <ProductsParameters>
                <SyncCurrentVersionOnly>false</SyncCurrentVersionOnly>
                <DeviceAttributes>
                    {SYNC_DEVICE_ATTRIBUTES}
                </DeviceAttributes>
                <CallerAttributes>{SYNC_CALLER_ATTRIBUTES}</CallerAttributes>
                <Products />
            </ProductsParameters>
        </parameters>
    </SyncUpdates>
</s:Body>
</s:Envelope>"""


def get_extended_update_info2_envelope(
    endpoint: str, update_id: str, revision_number: str
) -> str:
    return f"""<Envelope xmlns="{SOAP_NS}" xmlns:a="{ADDRESSING_NS}" xmlns:u="{WSU_NS}">
<Header>
    <a:Action mustUnderstand="1">{ACTION_GET_EXTENDED_UPDATE_INFO2}</a:Action>
    <a:To mustUnderstand="1">{escape(endpoint)}</a:To>
    {_empty_ticket_security()}
</Header>
<Body>
<GetExtendedUpdateInfo2 xmlns="{CLIENT_WEB_SERVICE_NS}">
    <updateIDs>
        <UpdateIdentity>
            <UpdateID>{escape(update_id)}</UpdateID>
            <RevisionNumber>{escape(revision_number)}</RevisionNumber>
        </UpdateIdentity>
    </updateIDs>
    <infoTypes>
        <XmlUpdateFragmentType>FileUrl</XmlUpdateFragmentType>
        <XmlUpdateFragmentType>FileDecryption</XmlUpdateFragmentType>
    </infoTypes>
    <deviceAttributes>{EXTENDED_INFO_DEVICE_ATTRIBUTES}</deviceAttributes>
</GetExtendedUpdateInfo2>
</Body>
</Envelope>"""
