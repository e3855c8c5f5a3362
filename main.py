from dataclasses import dataclass, field
from typing import Annotated

from rich.pretty import pprint

from tagflags import *


@dataclass
class Output:
    path: Annotated[str, Tag('long:"output" short:"o" value-name:"FILE" default:"-"')] = ""
    formats: Annotated[list[str], Tag('long:"format" default:"json" default:"text"')] = field(default_factory=list)


@dataclass
class Options:
    verbose: Annotated[bool, Tag('short:"v" description:"enable verbose"')] = False
    name: Annotated[str, Tag('long:"name" default:"anon"')] = ""
    output: Annotated[Output, Tag('group:"output" description:"output options"')] = field(default_factory=Output)


if __name__ == '__main__':
    options = Options()
    root = Group("Application Options", "", options)
    root.scan()
    root.each_group(Group.store_defaults, True)
    pprint(root)
    pprint(options)
