"""Shared pytest fixtures for better-plugins-screen tests."""

import pytest
from bs4 import BeautifulSoup
from PySide6.QtCore import QCoreApplication

from better_plugins_screen.settings import ConfigurationStore, MemoryBackend, PersistentStore

PAGE_URL = "https://example.com/wp-admin/plugins.php"

PLUGINS_PAGE = """
<html>
<body class="wp-admin">
<ul id="adminmenu">
  <li><a href="admin.php?page=cache-plugin-settings">Cache Plugin</a></li>
  <li><a href="options-general.php?page=seo_tools">SEO Tools</a></li>
  <li><a href="https://evil.example.org/admin.php?page=other">Other</a></li>
</ul>
<form class="search-form search-plugins" method="get">
  <p class="search-box"><input type="search" id="plugin-search-input" name="s"></p>
</form>
<table class="wp-list-table widefat plugins">
<tbody id="the-list">
  <tr class="active" data-slug="cache-plugin" data-plugin="cache-plugin/cache-plugin.php">
    <td class="plugin-title column-primary"><strong>Cache Plugin</strong>
      <div class="row-actions visible"><span class="deactivate"><a href="plugins.php?action=deactivate&amp;plugin=cache-plugin">Deactivate</a> | </span><span class="edit"><a href="plugin-editor.php?file=cache-plugin">Edit</a></span></div>
    </td>
    <td class="column-description desc">
      <div class="plugin-description"><p>Speeds up every page.</p><p style="display: none">zebra</p></div>
      <div class="plugin-author">By <a href="https://jane.example">Jane Doe</a></div>
    </td>
  </tr>
  <tr class="plugin-update-tr active" data-slug="cache-plugin"><td colspan="4">Update available</td></tr>
  <tr class="active" data-slug="other-thing" data-plugin="other-thing/other.php">
    <td class="plugin-title column-primary"><strong>Other</strong>
      <div class="row-actions visible"><span class="settings"><a href="options-general.php?page=other">Settings</a> | </span><span class="deactivate"><a href="plugins.php?action=deactivate&amp;plugin=other-thing">Deactivate</a></span></div>
    </td>
    <td class="column-description desc">
      <div class="plugin-description"><p>Does other things.</p></div>
      <div class="plugin-author">By <a href="https://acme.example">Acme</a></div>
    </td>
  </tr>
  <tr class="active" data-slug="seo-tools" data-plugin="seo-tools/seo_tools.php">
    <td class="plugin-title column-primary"><strong>SEO Tools Pro</strong>
      <div class="row-actions visible"><span class="deactivate"><a href="plugins.php?action=deactivate&amp;plugin=seo-tools">Deactivate</a></span></div>
    </td>
    <td class="column-description desc">
      <div class="plugin-description"><p>Search engine helpers.</p></div>
      <div class="plugin-author">By <span style="visibility: hidden">Ghost</span> Sam</div>
    </td>
  </tr>
  <tr class="active" data-slug="lonely" data-plugin="lonely/lonely.php">
    <td class="plugin-title column-primary"><strong>Lonely</strong>
      <div class="row-actions visible"><span class="deactivate"><a href="plugins.php?action=deactivate&amp;plugin=lonely">Deactivate</a></span></div>
    </td>
    <td class="column-description desc">
      <div class="plugin-description"><p>See <a href="https://evil.example.org/x">Settings</a>.</p></div>
      <div class="plugin-author">By Nobody</div>
    </td>
  </tr>
  <tr class="active" data-slug="a-better-plugins-screen" data-plugin="a-better-plugins-screen/a-better-plugins-screen.php">
    <td class="plugin-title column-primary"><strong>A Better Plugins Screen</strong>
      <div class="row-actions visible"><span class="deactivate"><a href="plugins.php?action=deactivate&amp;plugin=abps">Deactivate</a></span></div>
    </td>
    <td class="column-description desc"><div class="plugin-description"><p>Improves this screen.</p></div></td>
  </tr>
  <tr class="inactive" data-slug="sleepy" data-plugin="sleepy/sleepy.php">
    <td class="plugin-title column-primary"><strong>Sleepy</strong>
      <div class="row-actions visible"><span class="activate"><a href="plugins.php?action=activate&amp;plugin=sleepy">Activate</a></span></div>
    </td>
  </tr>
</tbody>
</table>
</body>
</html>
"""


@pytest.fixture(scope="session")
def qapp():
    """Qt core application for timers and signals (session-scoped)."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def page_url():
    return PAGE_URL


@pytest.fixture
def plugins_page():
    """Raw markup of a plugins page with four managed rows."""
    return PLUGINS_PAGE


@pytest.fixture
def document(plugins_page):
    """Parsed plugins page."""
    return BeautifulSoup(plugins_page, "html.parser")


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def storage(backend):
    """PersistentStore over an in-memory backend."""
    return PersistentStore(backend)


@pytest.fixture
def config(storage):
    """ConfigurationStore with defaults and an in-memory user layer."""
    return ConfigurationStore(storage)
