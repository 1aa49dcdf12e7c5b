# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""HTTP client for the layout solver backend.

Two endpoints are used:
- POST /api/solvers/generate    positions rooms on a plot
- POST /api/validation/validate scores a positioned layout against Vastu rules

The solver selector starts at "constraint" (slower, far better Vastu
compliance) and drops to "graph" once if the backend rejects the request.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from vastuflow.config.timeouts import Timeouts
from vastuflow.core.errors import ToolExecutionError

logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/solvers/generate"
VALIDATE_PATH = "/api/validation/validate"

CONSTRAINT_SOLVER = "constraint"
GRAPH_SOLVER = "graph"


class LayoutBackendClient:
    """Async client for the solver and validation endpoints."""

    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(Timeouts.HTTP_BACKEND, connect=Timeouts.HTTP_CONNECT)
        )

    async def generate(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Run the solver and return its JSON body as-is.

        The request goes out with the payload's solver (constraint unless
        set); a non-2xx answer is retried once with the graph solver. If the
        retry is rejected too, its body is returned marked with
        ``status: "error"``.

        Raises:
            ToolExecutionError: network failure or a body that is not a JSON object
        """
        body = dict(payload)
        body.setdefault("solver_type", CONSTRAINT_SOLVER)
        response = await self._post(GENERATE_PATH, body)
        if not response.is_success:
            logger.warning(
                f"[LayoutBackend] {body['solver_type']} solver failed ({response.status_code}), "
                f"retrying with {GRAPH_SOLVER} solver"
            )
            body["solver_type"] = GRAPH_SOLVER
            response = await self._post(GENERATE_PATH, body)

        data = self._decode(response)
        if not response.is_success:
            data.setdefault("status", "error")
            data.setdefault("message", f"Layout backend responded with {response.status_code}")
        else:
            rooms = data.get("rooms")
            logger.info(
                f"[LayoutBackend] Generated {len(rooms) if isinstance(rooms, list) else 0} rooms "
                f"with {data.get('solver_type', body['solver_type'])} solver"
            )
        return data

    async def validate(
        self, rooms: List[Dict[str, Any]], constraints: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Score a positioned layout. Returns None when the backend rejects it."""
        body: Dict[str, Any] = {"rooms": rooms}
        if constraints:
            body["constraints"] = constraints
        response = await self._post(VALIDATE_PATH, body)
        if not response.is_success:
            logger.warning(f"[LayoutBackend] Validation responded with {response.status_code}")
            return None
        return self._decode(response)

    async def _post(self, path: str, body: Dict[str, Any]) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            return await self._client.post(url, json=body)
        except httpx.HTTPError as e:
            raise ToolExecutionError(
                f"Layout backend unreachable: {e}", endpoint=path, cause=e
            ) from e

    @staticmethod
    def _decode(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise ToolExecutionError(
                "Layout backend returned invalid JSON",
                status_code=response.status_code,
                cause=e,
            ) from e
        if not isinstance(data, dict):
            raise ToolExecutionError(
                "Layout backend returned a non-object body", status_code=response.status_code
            )
        return data

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "LayoutBackendClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
