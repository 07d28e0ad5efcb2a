"""Browser launcher script served at /widget/<platform>-widget.js

One template drives every platform; the adapter options are injected as JSON.
"""
from functools import lru_cache
import json

from agentflow.services.platforms import PlatformAdapter
from agentflow.services.widget_controller import (
    ANIMATION_CSS,
    BUBBLE_ID,
    BUTTON_ID,
    STYLE_ID,
    WELCOME_AUTO_HIDE_SECONDS,
    WELCOME_DELAY_SECONDS,
)
from agentflow.models.widget import DEFAULT_WELCOME_MESSAGE

WIDGET_SCRIPT_TEMPLATE = """
(function() {
    'use strict';

    var PLATFORM = __PLATFORM__;
    var TRACKING_URL = __TRACKING_URL__;
    var BUTTON_ID = __BUTTON_ID__;
    var BUBBLE_ID = __BUBBLE_ID__;
    var STYLE_ID = __STYLE_ID__;
    var ANIMATION_CSS = __ANIMATION_CSS__;
    var DEFAULT_WELCOME = __DEFAULT_WELCOME__;
    var SHOW_DELAY_MS = __SHOW_DELAY_MS__;
    var AUTO_HIDE_MS = __AUTO_HIDE_MS__;
    var POSITIONS = ['bottom-right', 'bottom-left', 'top-right', 'top-left'];
    var LOG_PREFIX = 'AgentFlow ' + PLATFORM.label + ' Widget: ';

    function decodeBase64Json(payload) {
        var binary = atob(payload.trim());
        var bytes = new Uint8Array(binary.length);
        for (var i = 0; i < binary.length; i++) {
            bytes[i] = binary.charCodeAt(i);
        }
        var data = JSON.parse(new TextDecoder('utf-8', { fatal: true }).decode(bytes));
        if (!data || typeof data !== 'object' || Array.isArray(data)) {
            throw new Error('configuration is not an object');
        }
        return data;
    }

    function camelField(field) {
        return field.replace(/_([a-z])/g, function(_, c) { return c.toUpperCase(); });
    }

    function WidgetController(script) {
        this.script = script;
        this.config = null;
        this.button = null;
        this.bubble = null;
    }

    WidgetController.prototype.loadConfig = function() {
        var encoded = this.script.getAttribute('data-agent-config');
        var config;
        if (encoded) {
            try {
                config = decodeBase64Json(encoded);
            } catch (e) {
                console.error(LOG_PREFIX + 'Invalid encoded configuration');
                return null;
            }
        } else {
            var agentId = this.script.getAttribute('data-agent-id');
            if (!agentId || !agentId.trim()) {
                console.error(LOG_PREFIX + 'Missing agent configuration');
                return null;
            }
            config = {
                apiKey: agentId.trim(),
                position: this.script.getAttribute('data-position'),
                color: this.script.getAttribute('data-color') || PLATFORM.brandColor,
                welcomeMessage: this.script.getAttribute('data-welcome-msg')
            };
            var identifier = this.script.getAttribute(PLATFORM.identifierAttribute);
            if (identifier) {
                config[camelField(PLATFORM.identifierField)] = identifier;
            }
        }
        if (typeof config.apiKey !== 'string' || !config.apiKey.trim()) {
            console.error(LOG_PREFIX + 'Missing agent configuration');
            return null;
        }
        config.apiKey = config.apiKey.trim();
        var position = String(config.position).trim().toLowerCase();
        config.position = POSITIONS.indexOf(position) === -1 ? 'bottom-right' : position;
        if (typeof config.welcomeMessage !== 'string' || !config.welcomeMessage.trim()) {
            config.welcomeMessage = DEFAULT_WELCOME;
        }
        return config;
    };

    WidgetController.prototype.corner = function(verticalOffset) {
        var parts = this.config.position.split('-');
        return parts[0] + ': ' + verticalOffset + '; ' + parts[1] + ': 20px;';
    };

    WidgetController.prototype.deepLink = function() {
        var message = encodeURIComponent(this.config.welcomeMessage || PLATFORM.defaultMessage);
        var target = this.config[camelField(PLATFORM.identifierField)];
        if (target) {
            target = String(target).trim();
            if (PLATFORM.digitsOnly) {
                target = target.replace(/[^0-9]/g, '');
            }
        }
        if (target) {
            var url = PLATFORM.linkBase + encodeURIComponent(target);
            return PLATFORM.messageParam ? url + '?' + PLATFORM.messageParam + '=' + message : url;
        }
        if (PLATFORM.fallbackMessageParam) {
            return PLATFORM.fallbackUrl + '?' + PLATFORM.fallbackMessageParam + '=' + message;
        }
        return PLATFORM.fallbackUrl;
    };

    WidgetController.prototype.track = function() {
        try {
            fetch(TRACKING_URL, {
                method: 'POST',
                headers: { 'Content-Type': 'application/json' },
                keepalive: true,
                body: JSON.stringify({
                    apiKey: this.config.apiKey,
                    platform: PLATFORM.name,
                    action: 'widget_click',
                    timestamp: new Date().toISOString()
                })
            }).catch(function() {});
        } catch (e) {}
    };

    WidgetController.prototype.onClick = function() {
        try {
            window.open(this.deepLink(), '_blank', 'noopener');
        } catch (e) {
            console.error(LOG_PREFIX + 'Unable to open chat');
        }
        this.track();
    };

    WidgetController.prototype.renderButton = function() {
        var self = this;
        var button = document.createElement('div');
        button.id = BUTTON_ID;
        button.className = 'agentflow-chat-button';
        button.setAttribute('role', 'button');
        button.setAttribute('aria-label', 'Chat on ' + PLATFORM.label);
        button.style.cssText = 'position: fixed; ' + this.corner('20px') +
            ' width: 60px; height: 60px; border-radius: 50%;' +
            ' box-shadow: 0 4px 12px rgba(0,0,0,0.15); cursor: pointer; z-index: 1000;' +
            ' display: flex; align-items: center; justify-content: center; transition: all 0.3s ease;';
        button.style.background = PLATFORM.buttonBackground || this.config.color || PLATFORM.brandColor;
        button.innerHTML = PLATFORM.iconSvg;
        button.addEventListener('mouseover', function() { button.style.transform = 'scale(1.1)'; });
        button.addEventListener('mouseout', function() { button.style.transform = 'scale(1)'; });
        button.addEventListener('click', function() { self.onClick(); });
        document.body.appendChild(button);
        this.button = button;
    };

    WidgetController.prototype.injectStyle = function() {
        if (document.getElementById(STYLE_ID)) {
            return;
        }
        var style = document.createElement('style');
        style.id = STYLE_ID;
        style.textContent = ANIMATION_CSS;
        document.head.appendChild(style);
    };

    WidgetController.prototype.showWelcomeBubble = function() {
        if (this.bubble || document.getElementById(BUBBLE_ID)) {
            return;
        }
        var self = this;
        this.injectStyle();

        var bubble = document.createElement('div');
        bubble.id = BUBBLE_ID;
        bubble.style.cssText = 'position: fixed; ' + this.corner('90px') +
            ' background: white; border-radius: 12px; padding: 16px 32px 16px 16px;' +
            ' box-shadow: 0 4px 12px rgba(0,0,0,0.15); max-width: 280px; z-index: 999;' +
            ' border: 1px solid #e5e7eb; animation: slideUp 0.3s ease-out;' +
            " font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;" +
            ' font-size: 14px; color: #374151; line-height: 1.4;';

        var text = document.createElement('div');
        text.textContent = this.config.welcomeMessage;
        bubble.appendChild(text);

        var close = document.createElement('button');
        close.setAttribute('aria-label', 'Dismiss');
        close.textContent = '\\u00d7';
        close.style.cssText = 'position: absolute; top: 8px; right: 8px; background: none;' +
            ' border: none; cursor: pointer; font-size: 18px; color: #9ca3af; line-height: 1; padding: 0;';
        close.addEventListener('click', function(event) {
            event.stopPropagation();
            self.hideWelcomeBubble();
        });
        bubble.appendChild(close);

        document.body.appendChild(bubble);
        this.bubble = bubble;

        setTimeout(function() {
            if (self.bubble === bubble) {
                self.hideWelcomeBubble();
            }
        }, AUTO_HIDE_MS);
    };

    WidgetController.prototype.hideWelcomeBubble = function() {
        if (this.bubble && this.bubble.parentElement) {
            this.bubble.parentElement.removeChild(this.bubble);
        }
        this.bubble = null;
    };

    WidgetController.prototype.mount = function() {
        this.config = this.loadConfig();
        if (!this.config) {
            return;
        }
        this.renderButton();
        var self = this;
        setTimeout(function() {
            try {
                self.showWelcomeBubble();
            } catch (e) {
                console.error(LOG_PREFIX + 'Unable to show welcome message');
            }
        }, SHOW_DELAY_MS);
    };

    function findScript() {
        var scripts = document.querySelectorAll('script[data-agent-config], script[data-agent-id]');
        return scripts.length ? scripts[scripts.length - 1] : null;
    }

    var currentScript = document.currentScript;

    function init() {
        try {
            var script = (currentScript && (currentScript.hasAttribute('data-agent-config') ||
                currentScript.hasAttribute('data-agent-id'))) ? currentScript : findScript();
            if (!script) {
                console.error(LOG_PREFIX + 'No configuration found');
                return;
            }
            new WidgetController(script).mount();
        } catch (e) {
            console.error(LOG_PREFIX + 'Failed to initialize');
        }
    }

    if (document.readyState === 'loading') {
        document.addEventListener('DOMContentLoaded', init);
    } else {
        init();
    }
})();
"""


def _js(value) -> str:
    # Safe inside a <script> element as well as a standalone file
    return json.dumps(value).replace("</", "<\\/")


@lru_cache(maxsize=32)
def render_widget_script(adapter: PlatformAdapter, tracking_url: str) -> str:
    """JavaScript for one platform's launcher"""
    replacements = {
        "__PLATFORM__": _js(adapter.to_script_options()),
        "__TRACKING_URL__": _js(tracking_url),
        "__BUTTON_ID__": _js(BUTTON_ID.format(platform=adapter.name)),
        "__BUBBLE_ID__": _js(BUBBLE_ID),
        "__STYLE_ID__": _js(STYLE_ID),
        "__ANIMATION_CSS__": _js(ANIMATION_CSS),
        "__DEFAULT_WELCOME__": _js(DEFAULT_WELCOME_MESSAGE),
        "__SHOW_DELAY_MS__": str(int(WELCOME_DELAY_SECONDS * 1000)),
        "__AUTO_HIDE_MS__": str(int(WELCOME_AUTO_HIDE_SECONDS * 1000)),
    }
    script = WIDGET_SCRIPT_TEMPLATE
    for placeholder, value in replacements.items():
        script = script.replace(placeholder, value)
    return script
