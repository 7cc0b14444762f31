#    Licensed under the Apache License, Version 2.0 (the "License"); you may
#    not use this file except in compliance with the License. You may obtain
#    a copy of the License at
#
#         http://www.apache.org/licenses/LICENSE-2.0
#
#    Unless required by applicable law or agreed to in writing, software
#    distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
#    WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
#    License for the specific language governing permissions and limitations
#    under the License.

"""One-shot progress stream of a deployment.

A deployment is the only writer of its channel and closes it exactly once,
when it reaches DONE or ERROR. The caller is the only reader and simply
iterates the channel until it is closed::

    channel = progress.ProgressChannel()
    worker = threading.Thread(target=deployment.run, args=(channel,))
    worker.start()
    for update in channel:
        print(update.state, update.percentage)

A failed run ends with one ``Progress(ERROR, <last percentage>)`` record
before the channel closes.

A deployment that a :class:`metaldeploy.conductor.manager.DeployManager`
drops before it starts never writes; the manager closes its channel
empty.
"""

import collections
import queue
import threading

from metaldeploy.common import exception

Progress = collections.namedtuple('Progress', ['state', 'percentage'])

_CLOSED = object()


class ProgressChannel(object):

    def __init__(self):
        self._queue = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self):
        return self._closed

    def send(self, state, percentage):
        """Queue one progress record.

        :raises: ChannelClosed once the channel has been closed.
        """
        with self._lock:
            if self._closed:
                raise exception.ChannelClosed()
            self._queue.put(Progress(state, percentage))

    def close(self):
        """Close the channel, readers stop after the queued records.

        :raises: ChannelClosed if the channel is already closed.
        """
        with self._lock:
            if self._closed:
                raise exception.ChannelClosed()
            self._closed = True
            self._queue.put(_CLOSED)

    def __iter__(self):
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                # leave the marker for the next iteration
                self._queue.put(_CLOSED)
                return
            yield item
