"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = [
    "containers", "use", "new-container", "drop-container", "ls", "cd", "up", "crumb",
    "select", "select-all", "selection", "delete", "download", "save-as", "upload",
    "copy", "link", "refresh", "clear", "help", "exit",
]

# Commands whose arguments name entries of the current listing
LISTING_COMMANDS = ("cd", "select", "copy", "save-as", "link")

STYLE = Style.from_dict(
    {
        "prompt": "#1E90FF bold",
        "command": "#0088ff bold",
    }
)

AZURE = "\033[38;2;30;144;255m"
GREEN = "\033[32m"
RED = "\033[31m"
RESET = "\033[0m"

LOGO = f"""{AZURE}
   ____ _                 _   _____            _
  / ___| | ___  _   _  __| | | ____|_  ___ __ | | ___  _ __ ___ _ __
 | |   | |/ _ \\| | | |/ _` | |  _| \\ \\/ / '_ \\| |/ _ \\| '__/ _ \\ '__|
 | |___| | (_) | |_| | (_| | | |___ >  <| |_) | | (_) | | |  __/ |
  \\____|_|\\___/ \\__,_|\\__,_| |_____/_/\\_\\ .__/|_|\\___/|_|  \\___|_|
                                        |_|
{RESET}"""

WELCOME_TITLE = "CloudExplorer - Object Storage Browser"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "explorer> "

HELP_TEXT = """Available commands:
  containers [filter]                 List containers (optionally by name prefix)
  use <container>                     Open a container at its root
  new-container <name>                Create a container
  drop-container <name>               Delete a container
  ls                                  Show directories and objects at the current path
  cd <directory|path>                 Enter a directory, or jump to a path like a/b/
  up                                  Go up one directory
  crumb <index>                       Jump to a breadcrumb (0 is the root)
  select <name>...                    Toggle selection of objects or directories
  select-all                          Select every object (again to clear)
  selection                           Describe the current selection
  delete                              Delete the selection (directories include all nested objects)
  download [dir]                      Download the selection (default: configured download_dir)
  save-as <object> <path>             Download one object to a file
  upload <paths;joined> [prefix]      Upload local files, separated by ';'
  copy <object> <container> [key]     Copy an object into another container
  link <object>                       Print a time-bounded link for previewing an object
  refresh                             Re-list the current path
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Examples:
  use testcontainer
  cd mydir1/
  select test-blob-5.mp3 mydir2/
  download downloads/
  upload "a.txt;b.txt" mydir1/
  copy test-blob-1 testcontainer2"""
