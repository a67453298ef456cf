"""Live-reload client script and HTML injection.

The script opens a WebSocket to the serving host and reacts to the
three notification messages:

- ``connected`` — handshake finished, nothing to do
- ``reload`` — reload the page
- ``refreshcss`` — re-fetch every stylesheet without a full reload

Inserted immediately before the first ``</body>`` (any case) of
injectable documents when live reload is enabled. Documents without a
closing body tag are served unmodified.
"""

import re

# Extensions treated as HTML documents ("" covers extensionless files)
INJECTABLE_EXTENSIONS: frozenset[str] = frozenset({"", ".html", ".htm", ".xhtml", ".php"})

LIVE_RELOAD_JS = """\
(function(){
  if(!("WebSocket" in window))return;
  if(window.__wrenLiveReload)return;
  window.__wrenLiveReload=true;
  function refreshCSS(){
    var links=document.getElementsByTagName("link");
    for(var i=0;i<links.length;i++){
      var link=links[i];
      if(!link.rel||link.rel.toLowerCase()!=="stylesheet"||!link.href)continue;
      var href=link.href.replace(/([?&])_wrenCacheOverride=\\d+&?/,"$1").replace(/[?&]$/,"");
      link.href=href+(href.indexOf("?")>=0?"&":"?")+"_wrenCacheOverride="+Date.now();
    }
  }
  var protocol=window.location.protocol==="https:"?"wss://":"ws://";
  var socket=new WebSocket(protocol+window.location.host+"/");
  socket.onmessage=function(msg){
    if(msg.data==="reload")window.location.reload();
    else if(msg.data==="refreshcss")refreshCSS();
  };
})();
"""

LIVE_RELOAD_SNIPPET = '<script data-wren="live-reload">' + LIVE_RELOAD_JS + "</script>"

_BODY_END = re.compile(rb"</body>", re.IGNORECASE)
_SNIPPET_BYTES = LIVE_RELOAD_SNIPPET.encode("ascii")


def is_injectable(suffix: str) -> bool:
    """True if a file with this extension is an HTML document."""
    return suffix.lower() in INJECTABLE_EXTENSIONS


def inject_live_reload(html: bytes) -> bytes:
    """Insert the live-reload snippet before the first ``</body>``.

    Works on the raw bytes, so documents in any ASCII-compatible
    encoding pass through untouched apart from the insertion. Matching
    is case-insensitive and the original tag text is kept. Returns
    *html* unchanged when there is no closing body tag.
    """
    match = _BODY_END.search(html)
    if match is None:
        return html
    return html[: match.start()] + _SNIPPET_BYTES + html[match.start() :]
