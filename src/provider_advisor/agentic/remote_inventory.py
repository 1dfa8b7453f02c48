"""Paginated remote inventory listing exposed to the agent as a tool."""

from typing import Any, Dict, List, Optional

import requests

from provider_advisor.agentic.models import RemotePage, RemoteResource
from provider_advisor.utils.errors import ErrorContext, ToolInvocationFailed, error_handler
from provider_advisor.utils.logging import get_logger

logger = get_logger(__name__)


MAX_PAGE_SIZE = 100

# Tool name and JSON schema advertised to the reasoning agent
LIST_REMOTE_RESOURCES_TOOL = "list_remote_resources"
LIST_REMOTE_RESOURCES_DESCRIPTION = (
    "List the sites that exist in the remote account. Results are paginated: "
    "call repeatedly with page_num 0, 1, 2, ... until has_more is false."
)
LIST_REMOTE_RESOURCES_PARAMETERS = {
    "type": "object",
    "properties": {
        "page_num": {
            "type": "integer",
            "minimum": 0,
            "description": "Zero-based page number"
        },
        "page_size": {
            "type": "integer",
            "minimum": 1,
            "maximum": MAX_PAGE_SIZE,
            "description": "Number of sites per page (max 100)"
        }
    },
    "required": ["page_num"]
}


class RemoteInventoryClient:
    """Read-only client for the backend's paginated site listing."""

    def __init__(
        self,
        api_id: str,
        api_key: str,
        base_url: str = "https://my.incapsula.com/api/prov/v1",
        page_size: int = MAX_PAGE_SIZE,
        resource_type: str = "incapsula_site_v3",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None
    ):
        """Initialize remote inventory client.

        Args:
            api_id: Backend API id
            api_key: Backend API key
            base_url: Backend API base URL
            page_size: Default page size (clamped to 1..100)
            resource_type: Resource type remote sites map to
            timeout: HTTP timeout in seconds
            session: Optional requests session (for connection reuse/testing)
        """
        self.api_id = api_id
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.page_size = clamp_page_size(page_size)
        self.resource_type = resource_type
        self.timeout = timeout
        self.session = session or requests.Session()

    def list_page(self, page_num: int, page_size: Optional[int] = None) -> RemotePage:
        """Fetch one page of remote sites.

        Args:
            page_num: Zero-based page number
            page_size: Page size (defaults to the client page size)

        Returns:
            RemotePage

        Raises:
            ToolInvocationFailed: On HTTP errors, malformed responses or
                backend error codes
        """
        if page_num < 0:
            raise ToolInvocationFailed(f"page_num must be >= 0, got {page_num}")
        size = clamp_page_size(page_size or self.page_size)
        context = ErrorContext(
            operation="list_remote_resources",
            additional_info={"page_num": page_num, "page_size": size}
        )

        try:
            response = self.session.post(
                f"{self.base_url}/sites/list",
                headers={"x-API-Id": self.api_id, "x-API-Key": self.api_key},
                data={"page_size": size, "page_num": page_num},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except ValueError as e:
            raise ToolInvocationFailed(
                f"Backend returned a non-JSON response: {e}", context=context, cause=e
            )
        except requests.RequestException as e:
            error = error_handler.handle_exception(e, context)
            if isinstance(error, ToolInvocationFailed):
                raise error
            raise ToolInvocationFailed(error.message, context=context, cause=e)

        return RemotePage(
            page_num=page_num,
            page_size=size,
            resources=self._parse_sites(payload, context),
        )

    def list_all(self, page_size: Optional[int] = None, max_pages: int = 1000) -> List[RemoteResource]:
        """Fetch every page until a short page is returned.

        Args:
            page_size: Page size (defaults to the client page size)
            max_pages: Upper bound on pages fetched

        Returns:
            All remote resources in page order
        """
        resources: List[RemoteResource] = []
        for page_num in range(max_pages):
            page = self.list_page(page_num, page_size)
            resources.extend(page.resources)
            logger.debug(f"Fetched remote page {page_num} ({len(page.resources)} resources)")
            if not page.has_more:
                break
        else:
            logger.warning(f"Stopped remote listing after {max_pages} pages")
        return resources

    def invoke_tool(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Execute the list_remote_resources tool with agent-supplied arguments.

        Args:
            arguments: Decoded tool arguments

        Returns:
            JSON-serializable page payload

        Raises:
            ToolInvocationFailed: On malformed arguments or backend failure
        """
        if not isinstance(arguments, dict):
            raise ToolInvocationFailed(f"Tool arguments must be an object, got {type(arguments).__name__}")
        try:
            page_num = int(arguments.get("page_num", 0))
            page_size = arguments.get("page_size")
            page_size = int(page_size) if page_size is not None else None
        except (TypeError, ValueError) as e:
            raise ToolInvocationFailed(f"Invalid tool arguments {arguments}: {e}", cause=e)
        return self.list_page(page_num, page_size).to_tool_payload()

    def _parse_sites(self, payload: Any, context: ErrorContext) -> List[RemoteResource]:
        """Convert a /sites/list payload into remote resources."""
        if not isinstance(payload, dict):
            raise ToolInvocationFailed("Backend response is not a JSON object", context=context)

        res = payload.get("res", 0)
        if str(res) != "0":
            raise ToolInvocationFailed(
                f"Backend error {res}: {payload.get('res_message', 'unknown error')}",
                context=context,
            )

        sites = payload.get("sites") or []
        if not isinstance(sites, list):
            raise ToolInvocationFailed("Backend 'sites' field is not a list", context=context)

        resources = []
        for site in sites:
            if not isinstance(site, dict) or site.get("site_id") is None:
                logger.debug(f"Skipping malformed site entry: {site}")
                continue
            resources.append(RemoteResource(
                type=self.resource_type,
                id=str(site["site_id"]),
                name=str(site.get("domain") or site.get("display_name") or site["site_id"]),
            ))
        return resources


def clamp_page_size(page_size: int) -> int:
    """Clamp a page size to the 1..100 range the backend accepts."""
    return max(1, min(int(page_size), MAX_PAGE_SIZE))
