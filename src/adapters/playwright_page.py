"""Playwright bridge between the ZEP page and the DOM mirror.

An init script installed on every navigation serializes ``document.body`` once
and then reports mutation batches through an exposed binding. Sends are chained
on a single promise so batches reach Python in the order the page produced
them. Python queues the batches; one consumer applies them sequentially.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Set, Tuple

from playwright.async_api import BrowserContext, Page

LOGGER = logging.getLogger(__name__)

FEED_BINDING = "__zepwatchFeed"

PAGE_SCRIPT = """
(() => {
  if (window.__zepwatch) return;

  const ids = new WeakMap();
  const detached = new WeakSet();
  const byId = new Map();
  let nextId = 1;
  let chain = Promise.resolve();

  const send = (records) => {
    chain = chain.then(() => window.__zepwatchFeed(records)).catch(() => {});
  };

  const assign = (el) => {
    let id = ids.get(el);
    if (!id) {
      id = nextId++;
      ids.set(el, id);
      byId.set(id, new WeakRef(el));
    }
    return id;
  };

  const SKIP_TEXT = new Set(["SCRIPT", "STYLE", "NOSCRIPT"]);

  // Known children of a mirrored parent are sent by ref; anything the mirror
  // may have dropped (new, or removed in an earlier batch) is sent in full.
  const childList = (el, full) => {
    const out = [];
    if (SKIP_TEXT.has(el.tagName)) return out;
    for (const child of el.childNodes) {
      if (child.nodeType === Node.TEXT_NODE) {
        out.push({ text: child.data });
      } else if (child.nodeType === Node.ELEMENT_NODE) {
        const known = !full && ids.has(child) && !detached.has(child);
        out.push(known ? { ref: ids.get(child) } : serialize(child));
      }
    }
    return out;
  };

  const serialize = (el) => {
    const node = { id: assign(el), tag: el.tagName.toLowerCase(), attrs: {} };
    for (const attr of el.attributes) node.attrs[attr.name] = attr.value;
    if ("value" in el && typeof el.value === "string") node.attrs.value = el.value;
    detached.delete(el);
    node.children = childList(el, true);
    return node;
  };

  const observer = new MutationObserver((mutations) => {
    const parents = [];
    const attrs = [];
    for (const m of mutations) {
      if (m.type === "childList") {
        for (const gone of m.removedNodes) {
          if (gone.nodeType === Node.ELEMENT_NODE) detached.add(gone);
        }
        if (!parents.includes(m.target)) parents.push(m.target);
      } else if (m.type === "characterData") {
        const parent = m.target.parentElement;
        if (parent && !parents.includes(parent)) parents.push(parent);
      } else if (m.type === "attributes") {
        attrs.push(m);
      }
    }

    const records = [];
    let pending = parents;
    let progressed = true;
    while (pending.length && progressed) {
      progressed = false;
      const waiting = [];
      for (const parent of pending) {
        if (!ids.has(parent)) {
          waiting.push(parent);
          continue;
        }
        records.push({ kind: "children", parent: ids.get(parent), children: childList(parent, false) });
        progressed = true;
      }
      pending = waiting;
    }

    for (const m of attrs) {
      if (!ids.has(m.target)) continue;
      records.push({
        kind: "attr",
        id: ids.get(m.target),
        name: m.attributeName,
        value: m.target.getAttribute(m.attributeName),
      });
    }
    if (records.length) send(records);
  });

  window.__zepwatch = {
    listen(id, types) {
      const ref = byId.get(id);
      const el = ref && ref.deref();
      if (!el) return false;
      for (const type of types) {
        el.addEventListener(type, (e) => {
          send([{
            kind: "event",
            id,
            type,
            value: typeof el.value === "string" ? el.value : null,
            key: e.key ?? null,
          }]);
        });
      }
      return true;
    },
  };

  const start = () => {
    send([{ kind: "snapshot", node: serialize(document.body) }]);
    observer.observe(document.body, {
      childList: true,
      subtree: true,
      attributes: true,
      characterData: true,
    });
  };

  if (document.body) start();
  else document.addEventListener("DOMContentLoaded", start, { once: true });
})();
"""


class PageBridge:
    """Owns the page-side script and the queue of record batches."""

    def __init__(self, context: BrowserContext) -> None:
        self._context = context
        self._page: Page | None = None
        self._queue: "asyncio.Queue[Optional[List[Dict[str, Any]]]]" = asyncio.Queue()
        self._tasks: Set[asyncio.Task] = set()

    async def open(self, url: str) -> Page:
        """Install the feed on the context and navigate to ``url``."""

        await self._context.expose_binding(FEED_BINDING, self._on_feed)
        await self._context.add_init_script(PAGE_SCRIPT)
        pages = self._context.pages
        self._page = pages[0] if pages else await self._context.new_page()
        self._page.on("close", lambda _page: self._queue.put_nowait(None))
        await self._page.goto(url, wait_until="domcontentloaded")
        LOGGER.info("Watching %s", url)
        return self._page

    def _on_feed(self, source: Dict[str, Any], records: List[Dict[str, Any]]) -> None:
        if source.get("frame") is not None and self._page is not None:
            if source["frame"] != self._page.main_frame:
                return
        self._queue.put_nowait(records)

    async def batches(self) -> AsyncIterator[List[Dict[str, Any]]]:
        """Yield record batches in arrival order until the page closes."""

        while True:
            records = await self._queue.get()
            if records is None:
                return
            yield records

    def request_listen(self, node_id: int, event_types: Tuple[str, ...]) -> None:
        """Ask the page to forward DOM events for ``node_id`` (fire-and-forget)."""

        task = asyncio.get_running_loop().create_task(self._listen(node_id, event_types))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _listen(self, node_id: int, event_types: Tuple[str, ...]) -> None:
        if self._page is None:
            return
        try:
            attached = await self._page.evaluate(
                "([id, types]) => window.__zepwatch && window.__zepwatch.listen(id, types)",
                [node_id, list(event_types)],
            )
        except Exception as exc:
            LOGGER.warning("Failed to attach listeners to node %s: %s", node_id, exc)
            return
        if not attached:
            LOGGER.debug("Node %s is gone; listeners not attached", node_id)
